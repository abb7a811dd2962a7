"""
Tests for export-target policies.
"""

from __future__ import annotations

import pytest

from stickeranim.exceptions import PolicyError
from stickeranim.policy import (
    LINE_POLICY,
    TargetPolicy,
    check_export,
    compute_total_duration,
    load_policy,
    policy_from_dict,
)


class TestDurationRule:
    def test_total_duration(self):
        assert compute_total_duration(0, 1500) == 1500
        assert compute_total_duration(3, 1000) == 3000

    @pytest.mark.parametrize("loops, cycle, ok", [
        (0, 1500, True),        # infinite is always accepted
        (3, 1000, True),
        (4, 1000, True),
        (2, 2000, True),
        (3, 1500, False),       # 4500 > 4000
        (1, 1500, False),       # 1500 not a multiple of 1000
        (2, 3000, False),
    ])
    def test_line_compliance(self, loops, cycle, ok):
        assert LINE_POLICY.is_compliant(loops, cycle) is ok

    def test_limits_can_be_disabled(self):
        relaxed = TargetPolicy(name="relaxed", max_total_ms=None, duration_multiple_ms=None)
        assert relaxed.is_compliant(4, 4321)


class TestCheckExport:
    def test_line_pass(self):
        report = check_export(
            LINE_POLICY, loop_count=3, cycle_ms=1000,
            width=320, height=270, frame_count=8, size_bytes=200_000,
        )
        assert report.ok
        assert [c.name for c in report.checks] == ["duration", "size", "frames", "bytes"]
        assert report.lines()[0] == "line validation [PASS]:"

    def test_line_failures(self):
        report = check_export(
            LINE_POLICY, loop_count=3, cycle_ms=1500,
            width=400, height=270, frame_count=36, size_bytes=2_000_000,
        )
        assert not report.ok
        assert {c.name for c in report.failures} == {"duration", "size", "frames", "bytes"}
        assert all("[NG]" in line for line in report.lines()[1:])

    def test_missing_inputs_skipped(self):
        report = check_export(LINE_POLICY, loop_count=0, cycle_ms=1000)
        assert [c.name for c in report.checks] == ["duration"]


class TestLoadPolicy:
    def test_yaml(self, tmp_dir):
        path = tmp_dir / "strict.yaml"
        path.write_text("max_total_ms: 3000\nmax_frames: 12\n", encoding="utf-8")
        policy = load_policy(path)
        assert policy.name == "strict"
        assert policy.max_total_ms == 3000
        assert policy.max_frames == 12
        assert policy.duration_multiple_ms == 1000
        assert not policy.is_compliant(4, 1000)

    def test_explicit_name_and_null(self, tmp_dir):
        path = tmp_dir / "p.yml"
        path.write_text("name: anywhere\nmax_total_ms: null\n", encoding="utf-8")
        policy = load_policy(path)
        assert policy.name == "anywhere"
        assert policy.max_total_ms is None

    def test_unknown_key(self):
        with pytest.raises(PolicyError, match="Unknown policy keys"):
            policy_from_dict({"max_seconds": 4})

    @pytest.mark.parametrize("value", [-1, "4000", 1.5, True])
    def test_bad_values(self, value):
        with pytest.raises(PolicyError):
            policy_from_dict({"max_total_ms": value})

    def test_not_a_mapping(self, tmp_dir):
        path = tmp_dir / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(PolicyError, match="mapping"):
            load_policy(path)

    def test_missing_file(self, tmp_dir):
        with pytest.raises(PolicyError):
            load_policy(tmp_dir / "absent.yaml")

    def test_invalid_yaml(self, tmp_dir):
        path = tmp_dir / "broken.yaml"
        path.write_text("max_total_ms: [1, 2\n", encoding="utf-8")
        with pytest.raises(PolicyError):
            load_policy(path)
