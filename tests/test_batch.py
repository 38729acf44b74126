"""一括計算処理 (run_precalc) のテスト。"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeScorer
from precalc.batch import run_precalc
from precalc.csv_writer import CsvRowWriter, read_csv_rows
from precalc.errors import BeatmapLoadError, ConfigError, ScoringError
from precalc.models import BeatmapHandle
from precalc.mods import OSU_PROFILE, build_mod_combinations

DEFAULT_EXCLUDED = ["CL", "NC", "TD", "FL", "HD", "EZ", "HT"]


@pytest.fixture
def combos():
    return build_mod_combinations(OSU_PROFILE, excluded_mods=DEFAULT_EXCLUDED)


@pytest.mark.light
def test_mismatched_mode_file_yields_no_rows(write_osu, fake_scorer, combos, capsys):
    """taiko譜面は0行、osu譜面は組の数だけ組の順に出力されることを確認する。"""
    x = write_osu("x_taiko.osu", beatmap_id=10, mode=1)
    y = write_osu("y_std.osu", beatmap_id=20, mode=0)
    rows = []

    summary = run_precalc([str(x), str(y)], combos, fake_scorer, rows.append)

    assert [r.beatmap_id for r in rows] == [20] * len(combos)
    assert [(r.hr, r.dt) for r in rows] == [(True, False), (False, True), (True, True), (False, False)]
    assert all(path == str(y) for path, _ in fake_scorer.calls)

    assert summary.files_total == 2
    assert summary.files_skipped == 1
    assert summary.files_processed == 1
    assert summary.rows_written == len(combos)

    out = capsys.readouterr().out
    assert f"Excluding {x} because it is not osu" in out
    assert "isn't osu, but taiko" in out
    assert "with HR,DT," in out


@pytest.mark.light
def test_mode_is_checked_once_per_file(fake_scorer, combos):
    loaded = []

    def loader(path):
        loaded.append(path)
        return BeatmapHandle(path=path, beatmap_id=1, mode="mania")

    rows = []
    summary = run_precalc(["a.osu", "b.osu"], combos, fake_scorer, rows.append, loader=loader)

    assert loaded == ["a.osu", "b.osu"]
    assert rows == []
    assert fake_scorer.calls == []
    assert summary.files_skipped == 2


@pytest.mark.light
def test_rows_follow_file_then_combo_order(write_osu, fake_scorer, combos):
    files = [write_osu(f"{i}.osu", beatmap_id=i) for i in (3, 1, 2)]
    rows = []

    run_precalc([str(f) for f in files], combos, fake_scorer, rows.append)

    assert [r.beatmap_id for r in rows] == [3] * 4 + [1] * 4 + [2] * 4
    per_file = [(r.hr, r.dt) for r in rows[:4]]
    assert [(r.hr, r.dt) for r in rows[4:8]] == per_file
    assert [(r.hr, r.dt) for r in rows[8:]] == per_file


@pytest.mark.light
def test_scoring_failure_propagates_by_default(write_osu, combos):
    a = write_osu("a.osu", beatmap_id=1)
    b = write_osu("b.osu", beatmap_id=2)
    scorer = FakeScorer(fail_on=((str(a), "HRDT"),))
    rows = []

    with pytest.raises(ScoringError):
        run_precalc([str(a), str(b)], combos, scorer, rows.append)

    # HR, DT までは書き出し済み、HRDT で中断し b は処理されない
    assert len(rows) == 2
    assert all(path == str(a) for path, _ in scorer.calls)


@pytest.mark.light
def test_skip_policy_abandons_file_and_continues(write_osu, combos, capsys):
    a = write_osu("a.osu", beatmap_id=1)
    b = write_osu("b.osu", beatmap_id=2)
    scorer = FakeScorer(fail_on=((str(a), "DT"),))
    rows = []

    summary = run_precalc(
        [str(a), str(b)], combos, scorer, rows.append, failure_policy="skip"
    )

    assert [r.beatmap_id for r in rows] == [1] + [2] * len(combos)
    assert (str(a), "HRDT") not in scorer.calls
    assert summary.files_failed == 1
    assert summary.files_processed == 1
    assert summary.rows_written == 1 + len(combos)
    assert f"Failed on {a}" in capsys.readouterr().err


@pytest.mark.light
def test_skip_policy_covers_loader_failures(tmp_path: Path, write_osu, fake_scorer, combos):
    broken = tmp_path / "broken.osu"
    broken.write_text("garbage", encoding="utf-8")
    good = write_osu("good.osu", beatmap_id=5)
    rows = []

    summary = run_precalc(
        [str(broken), str(good)], combos, fake_scorer, rows.append, failure_policy="skip"
    )
    assert summary.files_failed == 1
    assert [r.beatmap_id for r in rows] == [5] * len(combos)

    with pytest.raises(BeatmapLoadError):
        run_precalc([str(broken), str(good)], combos, fake_scorer, [].append)


@pytest.mark.light
def test_unknown_failure_policy_is_rejected(fake_scorer, combos):
    with pytest.raises(ConfigError):
        run_precalc([], combos, fake_scorer, [].append, failure_policy="retry")


@pytest.mark.light
def test_streams_to_csv_writer(tmp_path: Path, write_osu, fake_scorer, combos):
    path = write_osu("a.osu", beatmap_id=77)
    out = tmp_path / "result.csv"

    with CsvRowWriter(str(out)) as writer:
        summary = run_precalc([str(path)], combos, fake_scorer, writer.write_row)

    rows = list(read_csv_rows(str(out)))
    assert len(rows) == summary.rows_written == 4
    assert rows[2].hr and rows[2].dt
    assert rows[2].lazer_sr == 6.0
    assert rows[2].lazer_pp == 250.0
    assert rows[3].lazer_sr == 5.0


@pytest.mark.light
def test_row_flags_follow_tracked_codes(write_osu, fake_scorer, combos):
    """tracked_codes に無いmodは列に反映されない。"""
    path = write_osu("a.osu", beatmap_id=9)
    rows = []

    run_precalc([str(path)], combos, fake_scorer, rows.append, tracked_codes=("DT",))

    assert [(r.hr, r.dt) for r in rows] == [(False, False), (False, True), (False, True), (False, False)]
    # 計算自体は HR を含む組でも行われる
    assert [key for _, key in fake_scorer.calls] == ["HR", "DT", "HRDT", ""]
