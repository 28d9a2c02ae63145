"""Tests for version helpers and the dependency reconciler."""

from __future__ import annotations

import pytest

from depaudit.engines.lockfile.models import (
    DependencyClass,
    LockedPackage,
    ManifestDependency,
    ReconcileStatus,
)
from depaudit.engines.lockfile.reconciler import reconcile, reconcile_dependency
from depaudit.engines.lockfile.versions import (
    is_valid_version,
    parse_range,
    parse_version,
    satisfies,
    versions_equal,
)

PROD = DependencyClass.PRODUCTION
DEV = DependencyClass.DEVELOPMENT
PEER = DependencyClass.PEER


def _dep(name: str, spec: str, dep_class: DependencyClass = PROD) -> ManifestDependency:
    return ManifestDependency(name=name, declared_range=spec, dep_class=dep_class)


def _locked(**versions: str) -> dict[str, LockedPackage]:
    return {
        name: LockedPackage(name=name, resolved_version=version)
        for name, version in versions.items()
    }


# ── versions ─────────────────────────────────────────────────────────────


class TestVersions:
    def test_parse_version_tolerates_prefixes(self):
        assert str(parse_version("v1.2.3")) == "1.2.3"
        assert str(parse_version("=1.2.3")) == "1.2.3"

    @pytest.mark.parametrize("value", ["1.2", "latest", "", None, 123])
    def test_invalid_versions(self, value):
        assert is_valid_version(value) is False

    def test_prerelease_is_valid(self):
        assert is_valid_version("1.0.0-beta.1")

    @pytest.mark.parametrize(
        "version, expr",
        [
            ("18.2.0", "^18.0.0"),
            ("4.17.21", "~4.17.0"),
            ("1.5.0", ">=1.0.0 <2.0.0"),
            ("1.2.3", "1.x"),
            ("2.1.0", "^1.0.0 || ^2.0.0"),
            ("3.0.0", "*"),
            ("3.0.0", ""),
            ("1.2.3", "1.2.3"),
            ("1.5.0", ">= 1.2.3"),
            ("18.2.0", "^ 18.0.0"),
            ("1.5.0", ">= 1.0.0 < 2.0.0"),
        ],
    )
    def test_satisfies(self, version, expr):
        assert satisfies(version, expr)

    @pytest.mark.parametrize(
        "version, expr",
        [
            ("17.0.2", "^18.0.0"),
            ("4.18.0", "~4.17.0"),
            ("2.0.0", ">=1.0.0 <2.0.0"),
            ("2.0.0", ">= 1.0.0 < 2.0.0"),
            ("1.0.0", ">= 1.2.3"),
            ("1.0.0", "latest"),
            ("not-a-version", "*"),
        ],
    )
    def test_does_not_satisfy(self, version, expr):
        assert not satisfies(version, expr)

    def test_parse_range_rejects_dist_tags(self):
        assert parse_range("latest") is None
        assert parse_range("^1.0.0") is not None

    def test_versions_equal(self):
        assert versions_equal("v1.0.0", "1.0.0")
        assert not versions_equal("1.0.0", "1.0.1")
        assert not versions_equal("1.0", "1.0")


# ── reconcile_dependency ─────────────────────────────────────────────────


class TestReconcileDependency:
    def test_mismatched_major(self):
        entry = reconcile_dependency(_dep("react", "^18.0.0"), _locked(react="17.0.2"))
        assert entry.status is ReconcileStatus.MISMATCHED
        assert entry.locked_version == "17.0.2"

    def test_satisfied(self):
        entry = reconcile_dependency(_dep("react", "^18.0.0"), _locked(react="18.2.0"))
        assert entry.status is ReconcileStatus.SATISFIED
        assert entry.locked_version == "18.2.0"

    def test_unlocked(self):
        entry = reconcile_dependency(_dep("react", "^18.0.0"), {})
        assert entry.status is ReconcileStatus.UNLOCKED
        assert entry.locked_version is None

    def test_invalid_locked_version_counts_as_unlocked(self):
        entry = reconcile_dependency(_dep("react", "^18.0.0"), _locked(react="garbage"))
        assert entry.status is ReconcileStatus.UNLOCKED

    def test_spaced_comparator_is_satisfied(self):
        entry = reconcile_dependency(_dep("lib", ">= 1.2.3"), _locked(lib="1.5.0"))
        assert entry.status is ReconcileStatus.SATISFIED

    def test_unparsable_range_is_mismatched(self):
        entry = reconcile_dependency(
            _dep("lib", "github:user/lib#main"), _locked(lib="1.0.0")
        )
        assert entry.status is ReconcileStatus.MISMATCHED


# ── reconcile ────────────────────────────────────────────────────────────


class TestReconcile:
    def test_manifest_order_and_counts(self, graph_factory):
        graph = graph_factory(
            {
                PROD: {"express": "^4.18.0", "react": "^18.0.0"},
                DEV: {"jest": "^29.0.0"},
                PEER: {"react-dom": "^18.0.0"},
            },
            locked={"express": "4.18.0", "react": "17.0.2", "jest": "29.5.0"},
        )
        result = reconcile(graph)

        assert [entry.name for entry in result] == ["express", "react", "jest", "react-dom"]
        assert len(result) == 4
        assert [e.name for e in result.satisfied()] == ["express", "jest"]
        assert [e.name for e in result.mismatched()] == ["react"]
        assert [e.name for e in result.unlocked()] == ["react-dom"]

    def test_same_name_in_two_sections(self, graph_factory):
        graph = graph_factory(
            {PROD: {"react": "^18.0.0"}, PEER: {"react": "^17.0.0"}},
            locked={"react": "18.2.0"},
        )
        statuses = [(e.dependency.dep_class, e.status) for e in reconcile(graph)]
        assert statuses == [
            (PROD, ReconcileStatus.SATISFIED),
            (PEER, ReconcileStatus.MISMATCHED),
        ]

    def test_idempotent(self, graph_factory):
        graph = graph_factory(
            {PROD: {"lodash": "^4.17.0", "axios": "^1.0.0"}}, locked={"lodash": "4.17.21"}
        )
        assert reconcile(graph) == reconcile(graph)

    def test_empty_manifest(self, graph_factory):
        assert len(reconcile(graph_factory({}))) == 0


class TestShortRange:
    @pytest.mark.parametrize(
        "locked, expected",
        [("17.0.2", ReconcileStatus.MISMATCHED), ("18.2.0", ReconcileStatus.SATISFIED)],
    )
    def test_caret_major_only(self, locked, expected):
        entry = reconcile_dependency(_dep("react", "^18"), _locked(react=locked))
        assert entry.status is expected
