from pathlib import Path

from webp_images.paths import is_sized_thumbnail
from webp_images.utils import generate_run_id, iter_images, lower_priority


def test_generate_run_id_unique() -> None:
    first = generate_run_id("test")
    second = generate_run_id("test")
    assert first != second
    assert first.startswith("test-")


def test_iter_images_is_sorted_and_filtered(tmp_path: Path) -> None:
    for name in ["b.PNG", "a.jpg", "a-150x150.jpg", "notes.txt", "c.jpeg"]:
        (tmp_path / "2024" / name).parent.mkdir(parents=True, exist_ok=True)
        (tmp_path / "2024" / name).write_bytes(b"x")
    (tmp_path / "2023").mkdir()
    (tmp_path / "2023" / "z.png").write_bytes(b"x")

    found = list(iter_images([tmp_path], ["jpg", "jpeg", "png"], is_sized_thumbnail))

    assert [p.relative_to(tmp_path).as_posix() for p in found] == [
        "2023/z.png",
        "2024/a.jpg",
        "2024/b.PNG",
        "2024/c.jpeg",
    ]


def test_iter_images_skips_missing_roots(tmp_path: Path) -> None:
    assert list(iter_images([tmp_path / "missing"], ["jpg"])) == []


def test_lower_priority_disabled() -> None:
    assert lower_priority(0) is None
