"""Shared test fixtures."""

import json

import pytest

from sareporting.database import FindingDatabase
from sareporting.models import DatabaseEntry

CATCH_ALL_PROMPT = "Label not found in the findings database."

RECORDS = [
    {"type": "NAN", "label": "NOT-FOUND", "title": "Not found", "prompt": CATCH_ALL_PROMPT},
    {"type": "GAS", "label": "Unused-Var", "title": "Unused variable", "prompt": "Remove dead code."},
    {"type": "GAS", "label": "Cheap-Increment", "title": "Use ++i", "prompt": "Pre-increment is cheaper."},
    {"type": "NC", "label": "Magic-Number", "title": "Magic numbers", "prompt": "Use constants."},
    {"type": "LOW", "label": "Zero-Address", "title": "Missing zero-address check", "prompt": "Validate inputs."},
]


@pytest.fixture
def records():
    return [dict(record) for record in RECORDS]


@pytest.fixture
def entries(records):
    return [
        DatabaseEntry(severity=r["type"], label=r["label"], title=r["title"], prompt=r["prompt"])
        for r in records
    ]


@pytest.fixture
def database(entries):
    return FindingDatabase(entries)


@pytest.fixture
def db_path(tmp_path, records):
    """Findings database written as SAR.json."""
    path = tmp_path / "SAR.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


@pytest.fixture
def contracts_dir(tmp_path):
    """A small project with annotated Solidity files."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "node_modules" / "lib").mkdir(parents=True)
    (root / "src" / "Token.sol").write_text(
        "\n".join(
            [
                "pragma solidity ^0.8.0;",
                "contract Token {",
                "    uint256 unused; // @SAR:G:Unused-Var",
                "    function f() external {",
                "        for (uint i; i < 10; i++) {} // @SAR:G:Cheap-Increment",
                "    }",
                "}",
            ]
        ),
        encoding="utf-8",
    )
    (root / "src" / "Vault.sol").write_text(
        "\n".join(
            [
                "contract Vault {",
                "    // @SAR:L:Zero-Address",
                "    address owner;",
                "    uint256 fee = 42; // @sar:N:Magic-Number",
                "    uint256 other; // @SAR:G:Unknown-Label",
                "}",
            ]
        ),
        encoding="utf-8",
    )
    (root / "node_modules" / "lib" / "Dep.sol").write_text("// @SAR:G:Unused-Var\n", encoding="utf-8")
    return root
