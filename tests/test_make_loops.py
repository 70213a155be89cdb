import pytest

import make_loops


def test_parse_weight():
    assert make_loops.parse_weight("cross=0.1") == ("cross", 0.1)
    assert make_loops.parse_weight(" end =2") == ("end", 2.0)


@pytest.mark.parametrize("text", ["cross", "spiral=1", "cross=lots", "end=-1"])
def test_parse_weight_rejects(text):
    with pytest.raises(ValueError):
        make_loops.parse_weight(text)


def test_parse_args_defaults():
    args = make_loops.parse_args([])
    assert (args.width, args.height) == (12, 10)
    assert args.mirror_directions == []
    assert args.style == "outline"


def test_main_writes_svg(tmp_path):
    out = tmp_path / "loops.svg"
    assert make_loops.main(["--width", "4", "--height", "3", "--seed", "7", "--out", str(out)]) == 0
    assert out.read_text().rstrip().endswith("</svg>")


def test_main_seed_is_reproducible(tmp_path):
    a, b = tmp_path / "a.svg", tmp_path / "b.svg"
    for out in (a, b):
        make_loops.main(["--seed", "3", "--mirror", "0", "--mirror", "1", "--style", "line",
                         "--out", str(out)])
    assert a.read_text() == b.read_text()


def test_main_bad_weight_exits_2(tmp_path):
    out = tmp_path / "loops.svg"
    assert make_loops.main(["--weight", "spiral=1", "--out", str(out)]) == 2
    assert not out.exists()


def test_main_bad_size_exits_2(tmp_path):
    assert make_loops.main(["--width", "0", "--out", str(tmp_path / "x.svg")]) == 2


def test_main_odd_mirror_still_saves(tmp_path):
    out = tmp_path / "loops.svg"
    assert make_loops.main(["--width", "5", "--mirror", "0", "--seed", "1", "--out", str(out)]) == 1
    assert out.exists()
