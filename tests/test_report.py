"""Tests for markdown rendering of severity reports and the database index."""

from sareporting.models import Appearance, DatabaseEntry, ResolvedFinding, SeverityClass
from sareporting.report import group_by_file, occurrence_line, render_index, render_reports, render_severity_report


def finding(label, title, prompt, *appearances, severity=SeverityClass.GAS):
    return ResolvedFinding(
        severity_class=severity,
        label=label,
        title=title,
        prompt=prompt,
        appearances=[Appearance(f, n, c) for f, n, c in appearances],
    )


def gas_mapping():
    return {
        "Unused-Var": finding(
            "Unused-Var",
            "Unused variable",
            "Remove dead code.",
            ("Token.sol", 3, "uint256 unused;"),
            ("Vault.sol", 7, "uint256 spare;"),
            ("Token.sol", 11, "uint256 other;"),
        ),
        "Cheap-Increment": finding("Cheap-Increment", "Use ++i", "Pre-increment.", ("Token.sol", 5, "i++;")),
    }


EXPECTED_GAS = """# Gas Findings

Total: **4 instances** over **2 issues**

| ID | Issue | Instances |
|:--:|:------|:---------:|
| [G-01] | Unused variable | 3 |
| [G-02] | Use ++i | 1 |

## [G-01] Unused variable

Remove dead code.

*Found 3 times*

```solidity
Token.sol L3: uint256 unused;
Token.sol L11: uint256 other;
```

```solidity
Vault.sol L7: uint256 spare;
```

## [G-02] Use ++i

Pre-increment.

*Found 1 time*

```solidity
Token.sol L5: i++;
```
"""


def test_render_gas_report():
    document = render_severity_report(gas_mapping(), SeverityClass.GAS)
    assert document.filename == "Gas.md"
    assert document.text == EXPECTED_GAS


def test_render_is_idempotent():
    first = render_severity_report(gas_mapping(), SeverityClass.GAS)
    second = render_severity_report(gas_mapping(), SeverityClass.GAS)
    assert first.text == second.text


def test_empty_mapping_renders_nothing():
    assert render_severity_report({}, SeverityClass.LOW) is None


def test_code_language_and_abbreviation():
    mapping = {"X": finding("X", "X", "prompt", ("A.sol", 1, "x"), severity=SeverityClass.UNRESOLVED)}
    document = render_severity_report(mapping, SeverityClass.UNRESOLVED, code_language="text")
    assert document.stem == "Unresolved"
    assert "## [U-01] X" in document.text
    assert "```text\nA.sol L1: x\n```" in document.text


def test_table_cells_are_escaped():
    mapping = {"P": finding("P", "a | b", "prompt", ("A.sol", 1, "x"), severity=SeverityClass.LOW)}
    document = render_severity_report(mapping, SeverityClass.LOW)
    assert "| [L-01] | a \\| b | 1 |" in document.text
    assert "## [L-01] a | b" in document.text


def test_render_reports_skips_empty_classes():
    mappings = {
        SeverityClass.GAS: gas_mapping(),
        SeverityClass.NON_CRITICAL: {},
        SeverityClass.LOW: {},
        SeverityClass.UNRESOLVED: {"Y": finding("Y", "Y", "p", ("A.sol", 2, "y"), severity=SeverityClass.UNRESOLVED)},
    }
    assert [d.filename for d in render_reports(mappings)] == ["Gas.md", "Unresolved.md"]


def test_group_by_file_keeps_first_seen_order():
    appearances = [Appearance("B.sol", 1, ""), Appearance("A.sol", 2, ""), Appearance("B.sol", 3, "")]
    groups = group_by_file(appearances)
    assert list(groups) == ["B.sol", "A.sol"]
    assert [a.line_number for a in groups["B.sol"]] == [1, 3]


def test_occurrence_line_pluralisation():
    assert occurrence_line(1) == "*Found 1 time*"
    assert occurrence_line(2) == "*Found 2 times*"


def test_index_groups_and_sorts_labels():
    entries = [
        DatabaseEntry("LOW", "zero-address", "Zero address", ""),
        DatabaseEntry("GAS", "Unused-Var", "Unused variable", ""),
        DatabaseEntry("GAS", "cache-length", "Cache length", ""),
        DatabaseEntry("NC", "Magic-Number", "Magic numbers", ""),
        DatabaseEntry("Medium", "Reentrancy", "Reentrancy", ""),
        DatabaseEntry("Low", "Unsafe-ERC20", "Unsafe transfer", ""),
    ]
    document = render_index(entries)
    assert document.filename == "FindingsIndex.md"
    assert document.text == (
        "# Findings Index\n"
        "\n"
        "## Gas\n"
        "\n"
        "| Label | Title |\n"
        "|:------|:------|\n"
        "| cache-length | Cache length |\n"
        "| Unused-Var | Unused variable |\n"
        "\n"
        "## Non-Critical\n"
        "\n"
        "| Label | Title |\n"
        "|:------|:------|\n"
        "| Magic-Number | Magic numbers |\n"
        "\n"
        "## Low\n"
        "\n"
        "| Label | Title |\n"
        "|:------|:------|\n"
        "| Unsafe-ERC20 | Unsafe transfer |\n"
        "| zero-address | Zero address |\n"
        "\n"
        "## Unresolved\n"
        "\n"
        "| Label | Title |\n"
        "|:------|:------|\n"
        "| Reentrancy | Reentrancy |\n"
    )


def test_index_sort_is_stable_for_equal_labels():
    entries = [
        DatabaseEntry("GAS", "Dup", "First", ""),
        DatabaseEntry("GAS", "dup", "Second", ""),
    ]
    text = render_index(entries).text
    assert text.index("First") < text.index("Second")
