"""
ContractScan Knowledge

Reference documents (skills) preloaded at startup and served as tools.
"""

from .skills import Skill, SkillLibrary, SKILLS

__all__ = ["Skill", "SkillLibrary", "SKILLS"]
