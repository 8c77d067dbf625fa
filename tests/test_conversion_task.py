"""Tests for whole conversions between REAPER and DAWproject files."""

import json

import pytest

from reaperconverter.cli_convert import main
from reaperconverter.core.context import ConversionContext
from reaperconverter.core.conversion_task import ConversionTask, detect_destination
from reaperconverter.core.errors import UnsupportedFormat
from reaperconverter.core.rpp_parser import read_rpp
from reaperconverter.formats.dawproject_format import load_dawproject

PROJECT = """<REAPER_PROJECT 0.1 "6.33/win64" 1600000000
  TEMPO 120 4 4
  MASTER_NCH 2 2
  MASTER_VOLUME 1 0 -1 -1 1
  MARKER 1 2 Chorus 0 0
  <TRACK
    NAME Lead
    VOLPAN 1 0 -1 -1 1
    <ITEM
      POSITION 1
      LENGTH 2
      NAME Melody
      <SOURCE MIDI
        HASDATA 1 960 QN
        E 0 90 3c 60
        E 960 80 3c 00
      >
    >
  >
  <TRACK
    NAME Strings
    ISBUS 1 1
  >
  <TRACK
    NAME Violin
    ISBUS 2 -1
  >
  <TRACK
    NAME Reverb
    AUXRECV 0 0 1 0 0
  >
>
"""


def _write_project(tmp_path):
    path = tmp_path / "Song.rpp"
    path.write_text(PROJECT, encoding="utf-8")
    return path


def test_detect_destination(tmp_path):
    """The destination is the other format."""
    assert detect_destination(tmp_path / "a.rpp") == "dawproject"
    assert detect_destination(tmp_path / "a.RPP-bak") == "dawproject"
    assert detect_destination(tmp_path / "a.dawproject") == "reaper"
    with pytest.raises(UnsupportedFormat):
        detect_destination(tmp_path / "a.cpr")


def test_reaper_to_dawproject(tmp_path):
    """A REAPER project is stored as .dawproject in the output folder."""
    result = ConversionTask(_write_project(tmp_path), tmp_path / "out").run()
    assert result.success, result.error
    assert result.output == tmp_path / "out" / "Song.dawproject"

    container = load_dawproject(result.output)
    names = [t.name for t in container.project.structure]
    assert names == ["Master", "Lead", "Strings", "Reverb"]
    assert container.project.structure[1].channel.sends[0].destination is container.project.structure[3].channel


def test_round_trip(tmp_path):
    """REAPER to DAWproject and back keeps tracks, folders, sends, markers and items."""
    first = ConversionTask(_write_project(tmp_path), tmp_path / "dawproject").run()
    assert first.success, first.error
    second = ConversionTask(first.output, tmp_path / "reaper").run()
    assert second.success, second.error
    assert second.output == tmp_path / "reaper" / "Song" / "Song.rpp"

    root = read_rpp(second.output)
    assert root.child("TEMPO").float_param(0) == 120.0
    assert root.child("MASTER_NCH").int_param(0) == 2

    tracks = root.children_named("TRACK")
    assert [t.child("NAME").param(0) for t in tracks] == ["Lead", "Strings", "Violin", "Reverb"]
    structure = [(t.child("ISBUS").int_param(0), t.child("ISBUS").int_param(1)) for t in tracks]
    assert structure == [(0, 0), (1, 1), (2, -1), (0, 0)]
    assert tracks[3].child("AUXRECV").int_param(0) == 0

    marker = root.child("MARKER")
    assert marker.float_param(1) == pytest.approx(2.0)
    assert marker.param(2) == "Chorus"

    item = tracks[0].child("ITEM")
    assert item.child("POSITION").float_param(0) == pytest.approx(1.0)
    assert item.child("LENGTH").float_param(0) == pytest.approx(2.0)
    events = item.child("SOURCE").children_named("E")
    assert events[0].parameters[1:3] == ["90", "3c"]


def test_missing_source(tmp_path):
    """A missing file fails without raising."""
    result = ConversionTask(tmp_path / "nope.rpp", tmp_path).run()
    assert not result.success
    assert "not found" in result.error


def test_wrong_destination(tmp_path):
    """Asking for the source format is an error."""
    result = ConversionTask(_write_project(tmp_path), tmp_path, "reaper").run()
    assert not result.success


def test_cancelled(tmp_path):
    """A cancelled run reports it and writes nothing."""
    context = ConversionContext(is_cancelled=lambda: True)
    result = ConversionTask(_write_project(tmp_path), tmp_path / "out", context=context).run()
    assert result.cancelled
    assert not result.success
    assert not (tmp_path / "out").exists()


def test_cli(tmp_path, capsys):
    """The command line prints the result as JSON."""
    assert main([str(_write_project(tmp_path)), str(tmp_path / "out")]) == 0
    result = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert result["success"] is True
    assert result["output"].endswith("Song.dawproject")


def test_cli_missing_file(tmp_path, capsys):
    """A missing source is reported as JSON error."""
    assert main([str(tmp_path / "missing.rpp"), str(tmp_path)]) == 1
    assert "error" in json.loads(capsys.readouterr().out)
