"""
Skills Catalog

Ethereum development reference documents served alongside the analyzers.
Each skill is downloaded once at startup from {base_url}/{id}/SKILL.md and
kept in memory; a skill that fails to download stays unavailable until the
next restart.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx
from loguru import logger

from ..core.config import ETHSKILLS_BASE_URL


@dataclass(frozen=True)
class Skill:
    """A reference document available from the skills host."""

    id: str
    name: str
    description: str


SKILLS: List[Skill] = [
    Skill("ship", "Ship", "End-to-end guide for AI agents, from a dApp idea to deployed production app"),
    Skill("why", "Why Ethereum", "Covers upgrades, tradeoffs, and use case matching for Ethereum"),
    Skill("gas", "Gas & Costs", "Current gas pricing and mainnet vs L2 cost comparison"),
    Skill("wallets", "Wallets", "Wallet creation, connection, signing, multisig, and account abstraction"),
    Skill("l2s", "Layer 2s", "L2 landscape, bridging, and deployment differences across L2 networks"),
    Skill("standards", "Standards", "Token, identity, and payment standards including ERC-20, ERC-721, and more"),
    Skill("tools", "Tools", "Frameworks, libraries, RPCs, and block explorers for Ethereum development"),
    Skill("building-blocks", "Money Legos", "DeFi protocols and composability patterns"),
    Skill("orchestration", "Orchestration", "Three-phase build system and dApp patterns"),
    Skill("addresses", "Contract Addresses", "Verified contract addresses for major protocols across Ethereum mainnet and L2s"),
    Skill("concepts", "Concepts", "Mental models for onchain building"),
    Skill("security", "Security", "Solidity security patterns and vulnerability defense"),
    Skill("testing", "Testing", "Foundry testing methodologies for smart contracts"),
    Skill("indexing", "Indexing", "Reading and querying onchain data"),
    Skill("frontend-ux", "Frontend UX", "Scaffold-ETH 2 rules and patterns for frontend development"),
    Skill("frontend-playbook", "Frontend Playbook", "Complete build-to-production pipeline for dApp frontends"),
    Skill("qa", "QA", "Production QA checklist for dApps"),
]


class SkillLibrary:
    """In-memory store of downloaded skill documents."""

    def __init__(
        self,
        base_url: str = ETHSKILLS_BASE_URL,
        skills: Optional[List[Skill]] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.skills = list(skills) if skills is not None else list(SKILLS)
        self.timeout = timeout
        self._content: Dict[str, str] = {}

    def skill_url(self, skill_id: str) -> str:
        return f"{self.base_url}/{skill_id}/SKILL.md"

    async def preload(self, client: Optional[httpx.AsyncClient] = None) -> int:
        """
        Download every skill concurrently.

        Args:
            client: HTTP client to use (default: a short-lived AsyncClient)

        Returns:
            Number of skills loaded
        """
        logger.info(f"[Skills] Downloading {len(self.skills)} skills from {self.base_url}")

        if client is None:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as owned:
                await asyncio.gather(*(self._fetch(owned, skill) for skill in self.skills))
        else:
            await asyncio.gather(*(self._fetch(client, skill) for skill in self.skills))

        logger.info(f"[Skills] Ready: {self.loaded_count}/{self.total}")
        return self.loaded_count

    async def _fetch(self, client: httpx.AsyncClient, skill: Skill) -> None:
        url = self.skill_url(skill.id)
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.warning(f"[Skills] [{skill.id}] fetch failed: {e}")
            return

        if response.status_code != 200:
            logger.warning(f"[Skills] [{skill.id}] HTTP {response.status_code}, skipped")
            return

        self._content[skill.id] = response.text
        logger.debug(f"[Skills] [{skill.id}] loaded ({len(response.text)} bytes)")

    def find(self, skill_id: str) -> Optional[Skill]:
        for skill in self.skills:
            if skill.id == skill_id:
                return skill
        return None

    def content(self, skill_id: str) -> Optional[str]:
        return self._content.get(skill_id)

    def is_loaded(self, skill_id: str) -> bool:
        return skill_id in self._content

    @property
    def loaded_count(self) -> int:
        return len(self._content)

    @property
    def total(self) -> int:
        return len(self.skills)

    def valid_ids(self) -> List[str]:
        return [skill.id for skill in self.skills]

    def render_index(self) -> str:
        """Markdown list of all skills, marking the ones that failed to load."""
        lines = []
        for skill in self.skills:
            note = "" if self.is_loaded(skill.id) else " *(unavailable)*"
            lines.append(f"- **{skill.name}** (id: `{skill.id}`): {skill.description}{note}")

        return (
            "# Available Ethereum Development Skills\n\n"
            "Use `get_skill` with a skill id to read the full content.\n\n"
            + "\n".join(lines)
        )
