#  pctrl - Entry Point
#
#  Runs the CLI without installing the package: `python run.py project list`.
#
#  Depends on: pctrl/cli/main.py
#  Used by:    (run directly)

from pctrl.cli.main import app


def main():
    app(prog_name="pctrl")


if __name__ == "__main__":
    main()
