from datetime import datetime

from PIL import Image

from photo_events.images import iter_image_paths, parse_exif_datetime, read_photo_metadata, scan_photos


def write_jpeg(path, captured=None, make=None, model=None, color=(200, 50, 50)):
    path.parent.mkdir(parents=True, exist_ok=True)
    exif = Image.Exif()
    if make:
        exif[271] = make
    if model:
        exif[272] = model
    if captured:
        exif[36867] = captured.strftime("%Y:%m:%d %H:%M:%S")
    image = Image.new("RGB", (32, 24), color)
    if len(exif):
        image.save(path, "JPEG", exif=exif)
    else:
        image.save(path, "JPEG")
    return path


def test_parse_exif_datetime():
    assert parse_exif_datetime("2024:06:15 14:00:00") == datetime(2024, 6, 15, 14, 0)
    assert parse_exif_datetime(b"2024:06:15 14:00:00\x00") == datetime(2024, 6, 15, 14, 0)
    assert parse_exif_datetime("0000:00:00 00:00:00") is None
    assert parse_exif_datetime(None) is None


def test_read_photo_metadata(tmp_path):
    path = write_jpeg(tmp_path / "a.jpg", datetime(2024, 6, 15, 14, 0), "Canon", "EOS R5")
    meta = read_photo_metadata(path)
    assert meta["captured_at"] == datetime(2024, 6, 15, 14, 0)
    assert meta["device_make"] == "Canon"
    assert meta["device_model"] == "EOS R5"
    assert (meta["width"], meta["height"]) == (32, 24)
    assert meta["phash"] is None
    assert read_photo_metadata(path, compute_phash=True)["phash"]


def test_unreadable_files_are_skipped(tmp_path):
    (tmp_path / "broken.jpg").write_bytes(b"not an image")
    (tmp_path / "notes.txt").write_text("hello")
    assert read_photo_metadata(tmp_path / "broken.jpg") is None
    assert list(iter_image_paths(tmp_path)) == [tmp_path / "broken.jpg"]
    assert list(scan_photos(tmp_path)) == []


def test_scan_photos_uses_relative_ids(tmp_path):
    write_jpeg(tmp_path / "day1" / "b.jpg", datetime(2024, 6, 15, 14, 5), model="iPhone 13")
    write_jpeg(tmp_path / "day1" / "a.jpg", datetime(2024, 6, 15, 14, 0), make="Apple", model="iPhone 13")
    write_jpeg(tmp_path / "no_exif.jpg")
    photos = {p.id: p for p in scan_photos(tmp_path)}
    assert set(photos) == {"day1/a.jpg", "day1/b.jpg", "no_exif.jpg"}
    assert photos["day1/a.jpg"].device_make == "Apple"
    assert photos["day1/b.jpg"].device_make is None
    assert photos["day1/b.jpg"].captured_at == datetime(2024, 6, 15, 14, 5)
    # file modification time stands in for the missing EXIF date
    assert isinstance(photos["no_exif.jpg"].captured_at, datetime)
    strict = {p.id: p for p in scan_photos(tmp_path, mtime_fallback=False)}
    assert strict["no_exif.jpg"].captured_at is None


def test_scan_photos_skips_perceptual_duplicates(tmp_path):
    write_jpeg(tmp_path / "a.jpg", datetime(2024, 6, 15, 14, 0))
    write_jpeg(tmp_path / "copy_of_a.jpg", datetime(2024, 6, 15, 14, 0))
    assert len(list(scan_photos(tmp_path))) == 2
    assert len(list(scan_photos(tmp_path, use_phash=True))) == 1
