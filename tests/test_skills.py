"""
Unit tests for the skills catalog (skills host mocked with httpx.MockTransport).

Run with: pytest tests/test_skills.py -v
"""

import asyncio

import httpx

from contractscan.knowledge import SKILLS, Skill, SkillLibrary


SAMPLE = [
    Skill("ship", "Ship", "End-to-end guide"),
    Skill("wallets", "Wallets", "Wallet handling"),
    Skill("gas", "Gas & Costs", "Gas costs"),
]


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/ship/SKILL.md":
        return httpx.Response(200, text="# Ship\nDeploy it.")
    if request.url.path == "/wallets/SKILL.md":
        return httpx.Response(404, text="not found")
    raise httpx.ConnectError("connection refused", request=request)


def preload(library: SkillLibrary) -> int:
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
            return await library.preload(client)

    return asyncio.run(_run())


class TestSkillLibrary:

    def test_catalog_has_unique_ids(self):
        ids = [skill.id for skill in SKILLS]
        assert len(ids) == 17
        assert len(set(ids)) == len(ids)

    def test_skill_url(self):
        library = SkillLibrary("https://skills.example/")
        assert library.skill_url("ship") == "https://skills.example/ship/SKILL.md"

    def test_preload_skips_failures(self):
        library = SkillLibrary("https://skills.example", skills=SAMPLE)

        loaded = preload(library)

        assert loaded == 1
        assert library.content("ship") == "# Ship\nDeploy it."
        assert not library.is_loaded("wallets")
        assert not library.is_loaded("gas")
        assert library.total == 3

    def test_render_index_marks_unavailable(self):
        library = SkillLibrary("https://skills.example", skills=SAMPLE)
        preload(library)

        index = library.render_index()

        assert "**Ship** (id: `ship`): End-to-end guide\n" in index + "\n"
        assert "**Wallets** (id: `wallets`): Wallet handling *(unavailable)*" in index

    def test_find(self):
        library = SkillLibrary(skills=SAMPLE)
        assert library.find("gas").name == "Gas & Costs"
        assert library.find("nope") is None
        assert library.valid_ids() == ["ship", "wallets", "gas"]
