#  pctrl - Dependency Injection Container
#
#  DeclarativeContainer wiring the store, collaborators and services.
#  One Store per process; the CLI resets singletons after each command.
#
#  Depends on: db/connection.py, store/store.py, services/*, integrations/*
#  Used by:    cli/*

from dependency_injector import containers, providers

from pctrl.db.connection import Database
from pctrl.integrations.coolify import CoolifyClient
from pctrl.integrations.git import GitCli
from pctrl.integrations.shell import DockerCli, OpenSshExecutor
from pctrl.services.legacy_migration import LegacyMigrator
from pctrl.services.resource_monitor import ResourceMonitor
from pctrl.services.script_runner import ScriptRunner
from pctrl.store.store import Store


class Container(containers.DeclarativeContainer):
    """DI container for pctrl.

    Tests override providers via container.xxx.override(providers.Object(mock)).
    """

    # --- Core ---
    db = providers.Singleton(Database)
    store = providers.Singleton(Store, db=db)

    # --- Collaborators ---
    remote = providers.Singleton(OpenSshExecutor)
    container_runtime = providers.Singleton(DockerCli)
    version_control = providers.Singleton(GitCli)
    deployments = providers.Singleton(CoolifyClient)

    # --- Services ---
    resource_monitor = providers.Singleton(ResourceMonitor, store=store)
    script_runner = providers.Factory(
        ScriptRunner,
        store=store,
        remote=remote,
        containers=container_runtime,
    )
    legacy_migrator = providers.Factory(LegacyMigrator, store=store)
