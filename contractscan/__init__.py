"""
ContractScan Gateway - Solidity static analysis over MCP

Lets remote callers submit a bundle of Solidity sources to a command-line
analyzer (Slither or Aderyn), returns the findings verbatim and reuses
results for repeated submissions of identical content.
"""

__version__ = "1.0.0"
__author__ = "ContractScan Team"
