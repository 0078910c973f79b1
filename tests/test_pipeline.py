import asyncio

import pytest

from config.settings import Settings
from models.config import RepresentationConfig
from services.halacious import Halacious
from utils.errors import PipelineError, UnknownRelError, ValidationError


def company():
    return {
        "id": 100,
        "name": "Acme",
        "boss": {"id": 1, "name": "Boss Man"},
        "employees": [
            {"id": 2, "name": "Alice"},
            {"id": 3, "name": "Bob"},
        ],
        "contractors": [],
    }


async def test_links_are_templated_against_the_entity(halacious, factory, mycompany):
    representation = factory.create(company(), "/companies/100")
    config = {
        "links": {
            "mco:employees": "./employees",
            "mco:boss": "/people/{boss.id}",
            "mco:audit": {"href": lambda rep, entity: f"/audits/{entity['id']}", "title": "Audit"},
            "mco:search": "/people{?q}",
        }
    }

    representation = await halacious.transform_representation(config, representation)
    links = representation.to_json()["_links"]

    assert links["mco:employees"] == {"href": "/companies/100/employees"}
    assert links["mco:boss"] == {"href": "/people/1"}
    assert links["mco:audit"] == {"href": "/audits/100", "title": "Audit"}
    # undefined query variables are dropped during expansion
    assert links["mco:search"] == {"href": "/people"}
    assert links["curies"] == [{"name": "mco", "href": "/rels/mycompany/{rel}", "templated": True}]


async def test_link_query_suffix_marks_link_templated(halacious, factory):
    representation = factory.create({}, "/people")
    config = {"links": {"next": "./page"}, "query": "{?page}"}

    representation = await halacious.configure_representation(config, representation)

    assert representation.to_json()["_links"]["next"] == {"href": "/people/page{?page}", "templated": True}


async def test_link_query_suffix_is_appended_after_resolution(halacious, factory):
    representation = factory.create({}, "/people?page=2")
    config = {"links": {"next": "./page", "sorted": "./sorted"}, "query": "?sort=name"}

    representation = await halacious.configure_representation(config, representation)
    links = representation.to_json()["_links"]

    assert links["next"] == {"href": "/people/page?sort=name"}
    assert links["sorted"] == {"href": "/people/sorted?sort=name"}


async def test_embedded_declarations(halacious, factory):
    representation = factory.create(company(), "/companies/100")
    config = {
        "embedded": {
            "boss": {"path": "boss", "href": "/people/{item.id}"},
            "employees": {
                "path": "employees",
                "href": "./employees/{item.id}",
                "ignore": "id",
            },
        }
    }

    representation = await halacious.transform_representation(config, representation)
    payload = representation.to_json()

    assert "boss" not in payload and "employees" not in payload
    assert payload["contractors"] == []
    assert payload["_embedded"]["boss"] == {
        "_links": {"self": {"href": "/people/1"}},
        "id": 1,
        "name": "Boss Man",
    }
    employees = payload["_embedded"]["employees"]
    assert [employee["name"] for employee in employees] == ["Alice", "Bob"]
    assert employees[0]["_links"]["self"] == {"href": "/companies/100/employees/2"}
    assert "id" not in employees[0]


async def test_nested_config_links_use_item_entity(halacious, factory):
    representation = factory.create(company(), "/companies/100")
    config = {
        "embedded": {
            "employees": {
                "path": "employees",
                "href": "/people/{item.id}",
                "links": {"profile": "./profile/{name}"},
            },
        }
    }

    representation = await halacious.transform_representation(config, representation)
    employees = representation.to_json()["_embedded"]["employees"]

    assert employees[1]["_links"]["profile"] == {"href": "/people/3/profile/Bob"}


async def test_empty_list_embeds_empty_list_but_missing_value_embeds_nothing(halacious, factory):
    representation = factory.create(company(), "/companies/100")
    config = {
        "embedded": {
            "contractors": {"path": "contractors", "href": "/people/{item.id}"},
            "partners": {"path": "partners", "href": "/companies/{item.id}"},
            "nested": {"path": "boss.missing", "href": "/x"},
        }
    }

    representation = await halacious.transform_representation(config, representation)
    payload = representation.to_json()

    assert payload["_embedded"] == {"contractors": []}
    assert "contractors" not in payload
    assert "boss" in payload


async def test_embedded_declaration_requires_a_path(halacious, factory):
    representation = factory.create(company(), "/companies/100")

    with pytest.raises(PipelineError):
        await halacious.transform_representation({"embedded": {"boss": {"href": "/people/1"}}}, representation)


async def test_deeply_nested_embeds_share_curies(halacious, factory, mycompany):
    entity = {"name": "Acme", "divisions": [{"name": "R&D", "teams": [{"name": "Core"}, {"name": "Web"}]}]}
    config = {
        "embedded": {
            "mco:divisions": {
                "path": "divisions",
                "href": "./divisions/{item.name}",
                "embedded": {
                    "mco:teams": {"path": "teams", "href": "./teams/{item.name}"},
                },
            }
        }
    }

    representation = await halacious.transform_representation(config, factory.create(entity, "/companies/1"))
    payload = representation.to_json()

    assert payload["_links"]["curies"] == [{"name": "mco", "href": "/rels/mycompany/{rel}", "templated": True}]
    division = payload["_embedded"]["mco:divisions"][0]
    assert "curies" not in division["_links"]
    assert [team["name"] for team in division["_embedded"]["mco:teams"]] == ["Core", "Web"]
    assert division["_embedded"]["mco:teams"][1]["_links"]["self"] == {"href": "/companies/1/divisions/R%26D/teams/Web"}


class Employee:
    def __init__(self, name, delay):
        self.name = name
        self.delay = delay

    async def to_hal(self, representation):
        await asyncio.sleep(self.delay)
        representation.link("avatar", f"/avatars/{self.name}")

    def to_json(self):
        return {"name": self.name}


async def test_sibling_order_is_kept_regardless_of_completion(halacious, factory):
    entity = {"employees": [Employee("slow", 0.05), Employee("medium", 0.02), Employee("fast", 0)]}
    config = {"embedded": {"employees": {"path": "employees", "href": "/people/{item.name}"}}}

    representation = await halacious.transform_representation(config, factory.create(entity, "/companies/1"))
    employees = representation.to_json()["_embedded"]["employees"]

    assert [employee["name"] for employee in employees] == ["slow", "medium", "fast"]
    assert employees[0]["_links"]["avatar"] == {"href": "/avatars/slow"}


async def test_entity_to_hal_runs_before_config(halacious, factory):
    calls = []

    class Person:
        def to_hal(self, representation):
            calls.append("to_hal")
            representation.prop("computed", True)

        def to_json(self):
            return {"name": "Bob"}

    def prepare(representation):
        calls.append("prepare")

    representation = await halacious.transform_representation(prepare, factory.create(Person(), "/people/1"))

    assert calls == ["to_hal", "prepare"]
    assert representation.to_json() == {"_links": {"self": {"href": "/people/1"}}, "name": "Bob", "computed": True}


async def test_hooks_may_replace_the_representation(halacious, factory):
    class Boss:
        def to_hal(self, representation):
            replacement = representation.factory.create({"name": "Replacement"}, "/people/replaced", representation.root)
            return replacement

    entity = {"boss": Boss()}
    config = {"embedded": {"boss": {"path": "boss", "href": "/people/1"}}}

    representation = await halacious.transform_representation(config, factory.create(entity, "/companies/1"))

    assert representation.to_json()["_embedded"]["boss"] == {
        "_links": {"self": {"href": "/people/replaced"}},
        "name": "Replacement",
    }

    async def prepare(rep):
        return rep.factory.create({"replaced": True}, "/other")

    result = await halacious.transform_representation({"prepare": prepare}, factory.create({}, "/people"))
    assert result.to_json() == {"_links": {"self": {"href": "/other"}}, "replaced": True}


async def test_hook_failure_aborts_the_whole_tree(halacious, factory):
    finished = []

    class Good:
        async def to_hal(self, representation):
            await asyncio.sleep(0.05)
            finished.append(self)

    class Bad:
        async def to_hal(self, representation):
            raise RuntimeError("boom")

    entity = {"items": [Good(), Bad(), Good()]}
    config = {"embedded": {"items": {"path": "items", "href": "/items/x"}}}

    with pytest.raises(PipelineError) as excinfo:
        await halacious.transform_representation(config, factory.create(entity, "/things"))

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    # siblings still sleeping were cancelled
    assert finished == []


async def test_prepare_failure_in_nested_config_propagates(halacious, factory):
    def prepare(representation):
        raise ValueError("nested failure")

    config = {"embedded": {"boss": {"path": "boss", "href": "/people/1", "prepare": prepare}}}

    with pytest.raises(PipelineError, match="nested failure"):
        await halacious.transform_representation(config, factory.create(company(), "/companies/1"))


async def test_host_injected_errors_propagate(halacious, factory):
    async def prepare(representation):
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await halacious.transform_representation(prepare, factory.create({}, "/people"))


async def test_strict_mode_errors_are_not_wrapped():
    halacious = Halacious(Settings(STRICT=True))
    halacious.add_namespace({"name": "mycompany", "prefix": "mco"})
    representation = halacious.factory().create({}, "/people")

    with pytest.raises(UnknownRelError):
        await halacious.configure_representation({"links": {"mco:unknown": "/x"}}, representation)


async def test_invalid_config_is_a_validation_error(halacious, factory):
    with pytest.raises(ValidationError):
        await halacious.configure_representation({"links": "nope"}, factory.create({}, "/people"))


async def test_representation_configure(halacious, factory):
    representation = factory.create({"id": 1, "secret": "x"}, "/people/1")

    result = await representation.configure(RepresentationConfig(ignore=["secret"], links={"self-alt": "./alt"}))

    assert result is representation
    assert representation.to_json() == {
        "_links": {"self": {"href": "/people/1"}, "self-alt": {"href": "/people/1/alt"}},
        "id": 1,
    }
