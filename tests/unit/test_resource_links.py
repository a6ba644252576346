#  pctrl - Resource Link Tests
#
#  Depends on: pctrl/store/resources.py, pctrl/store/projects.py
#  Used by:    pytest

import pytest

from pctrl.exceptions import AlreadyExistsError, NotFoundError
from pctrl.models.enums import ResourceType
from pctrl.models.schemas import Project, ProjectResource


class TestLink:
    async def test_link_returns_generated_id(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        link_id = await tmp_store.link("shop", ResourceType.SERVER, "prod-box", role="web")

        assert len(link_id) == 32
        link = await tmp_store.get_link(link_id)
        assert link.project_id == "shop"
        assert link.resource_type == ResourceType.SERVER
        assert link.role == "web"

    async def test_explicit_link_id(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        assert await tmp_store.link("shop", ResourceType.DOMAIN, "d1", link_id="fixed") == "fixed"

    async def test_explicit_link_id_in_use(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        await tmp_store.save_project(Project(id="blog", name="Blog"))
        await tmp_store.link("shop", ResourceType.DOMAIN, "d1", link_id="L")

        with pytest.raises(AlreadyExistsError):
            await tmp_store.link("blog", ResourceType.DOMAIN, "d1", link_id="L")

        assert [link.id for link in await tmp_store.resources_of("shop")] == ["L"]
        assert await tmp_store.resources_of("blog") == []

    async def test_missing_project_raises(self, tmp_store):
        with pytest.raises(NotFoundError, match="Project 'ghost' not found"):
            await tmp_store.link("ghost", ResourceType.SERVER, "prod-box")
        assert await tmp_store.projects_of(ResourceType.SERVER, "prod-box") == []

    async def test_resource_end_may_dangle(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        await tmp_store.link("shop", ResourceType.DATABASE, "never-created")
        [link] = await tmp_store.resources_of("shop")
        assert link.resource_id == "never-created"

    async def test_same_resource_twice(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        await tmp_store.link("shop", ResourceType.SERVER, "prod-box", role="web")
        await tmp_store.link("shop", ResourceType.SERVER, "prod-box", role="worker")
        links = await tmp_store.resources_of("shop")
        assert sorted(link.role for link in links) == ["web", "worker"]
        assert await tmp_store.projects_of(ResourceType.SERVER, "prod-box") == ["shop"]


class TestQueries:
    async def test_resources_of_ordering(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        await tmp_store.link("shop", ResourceType.SERVER, "b")
        await tmp_store.link("shop", ResourceType.DOMAIN, "z")
        await tmp_store.link("shop", ResourceType.SERVER, "a")
        pairs = [(r.resource_type.value, r.resource_id) for r in await tmp_store.resources_of("shop")]
        assert pairs == [("domain", "z"), ("server", "a"), ("server", "b")]

    async def test_projects_of_many(self, tmp_store):
        for pid in ("alpha", "beta", "gamma"):
            await tmp_store.save_project(Project(id=pid, name=pid.title()))
        await tmp_store.link("beta", ResourceType.SERVER, "shared")
        await tmp_store.link("alpha", ResourceType.SERVER, "shared")
        await tmp_store.link("gamma", ResourceType.DOMAIN, "shared")

        assert await tmp_store.projects_of(ResourceType.SERVER, "shared") == ["alpha", "beta"]
        assert await tmp_store.projects_of("domain", "shared") == ["gamma"]

    async def test_unlink(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        link_id = await tmp_store.link("shop", ResourceType.GIT, "repo-1")
        assert await tmp_store.unlink(link_id) is True
        assert await tmp_store.unlink(link_id) is False
        assert await tmp_store.resources_of("shop") == []


class TestCascade:
    async def test_removing_project_removes_links(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        await tmp_store.save_project(Project(id="other", name="Other"))
        await tmp_store.link("shop", ResourceType.SERVER, "prod-box")
        await tmp_store.link("shop", ResourceType.DOMAIN, "d1")
        keep = await tmp_store.link("other", ResourceType.SERVER, "prod-box")

        assert await tmp_store.remove_project("shop") is True

        assert await tmp_store.resources_of("shop") == []
        assert await tmp_store.projects_of(ResourceType.SERVER, "prod-box") == ["other"]
        assert (await tmp_store.get_link(keep)).project_id == "other"

    async def test_removing_resource_leaves_links(self, tmp_store, sample_project, sample_server):
        await tmp_store.save_project(sample_project)
        await tmp_store.save_server(sample_server)
        await tmp_store.link("shop", ResourceType.SERVER, "prod-box")

        await tmp_store.remove_server("prod-box")

        assert await tmp_store.projects_of(ResourceType.SERVER, "prod-box") == ["shop"]


class TestSaveLink:
    async def test_upserts_full_record(self, tmp_store, sample_project):
        await tmp_store.save_project(sample_project)
        record = ProjectResource(id="l1", project_id="shop", resource_type=ResourceType.SERVER, resource_id="a")
        await tmp_store.save_link(record)
        await tmp_store.save_link(record.model_copy(update={"role": "db"}))

        [link] = await tmp_store.resources_of("shop")
        assert link.role == "db"

    async def test_missing_project_raises(self, tmp_store):
        record = ProjectResource(id="l1", project_id="ghost", resource_type=ResourceType.SERVER, resource_id="a")
        with pytest.raises(NotFoundError, match="Project 'ghost' not found"):
            await tmp_store.save_link(record)
        assert await tmp_store.get_link("l1") is None
        assert await tmp_store.resources_of("ghost") == []
