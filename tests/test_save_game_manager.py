from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FailingCompressionProvider, FailingCryptoProvider, XorCryptoProvider
from savegame import SaveGameConfig, SaveGameManager
from savegame.providers import AesCryptoProvider, DeflateCompressionProvider


@pytest.fixture()
def mgr(store_dir: Path):
    manager = SaveGameManager(store_path=store_dir)
    yield manager
    manager.dispose()


def test_defaults(mgr: SaveGameManager, store_dir: Path):
    assert mgr.store_path == store_dir
    assert isinstance(mgr.crypto_provider, AesCryptoProvider)
    assert isinstance(mgr.compression_provider, DeflateCompressionProvider)
    assert mgr.get_file_path("slot1") == store_dir / "slot1.sav"


def test_get_file_path_creates_folder_on_request(mgr: SaveGameManager, store_dir: Path):
    assert not store_dir.exists()
    mgr.get_file_path("slot1")
    assert not store_dir.exists()
    mgr.get_file_path("slot1", auto_create_folder=True)
    assert store_dir.is_dir()


def test_encrypted_text_round_trip(mgr: SaveGameManager):
    assert mgr.save_game("p1", "hello", encrypt=True, compress=False)
    assert mgr.exists_save_data("p1")
    assert mgr.load_game("p1") == "hello"

    raw = mgr.get_file_path("p1").read_bytes()
    assert raw[0:1] == b"\x01"
    assert b"hello" not in raw


def test_compressed_text_is_smaller_and_round_trips(mgr: SaveGameManager):
    text = ("The dead keep their secrets. " * 40)[:1024]
    assert len(text.encode("utf-8")) == 1024

    assert mgr.save_game("p2", text, encrypt=False, compress=True)
    size = mgr.get_file_path("p2").stat().st_size
    assert size < 1024 + 2
    assert mgr.load_game("p2") == text


@pytest.mark.parametrize("encrypt,compress", [(True, True), (True, False), (False, True), (False, False)])
def test_binary_round_trip(mgr: SaveGameManager, encrypt, compress):
    payload = bytes(range(256)) * 3
    assert mgr.save_game_data("bin", payload, encrypt=encrypt, compress=compress)
    assert mgr.load_game_data("bin") == payload


def test_overwrite_truncates_previous_record(mgr: SaveGameManager):
    assert mgr.save_game_data("slot1", b"A" * 500, encrypt=False, compress=False)
    assert mgr.save_game_data("slot1", b"short", encrypt=False, compress=False)
    mgr.dispose()

    raw = (mgr.store_path / "slot1.sav").read_bytes()
    assert raw == b"\x00\x00short"


def test_write_handle_is_reused_and_closed_before_load(mgr: SaveGameManager):
    assert mgr.save_game("slot1", "one", encrypt=False)
    handle = mgr._handles["slot1"]
    assert mgr.save_game("slot1", "two", encrypt=False)
    assert mgr._handles["slot1"] is handle

    assert mgr.load_game("slot1") == "two"
    assert "slot1" not in mgr._handles
    assert handle.closed

    # The next save opens a new handle.
    assert mgr.save_game("slot1", "three", encrypt=False)
    assert mgr._handles["slot1"] is not handle
    assert mgr.load_game("slot1") == "three"


def test_legacy_file_is_loaded(mgr: SaveGameManager):
    path = mgr.get_file_path("old", auto_create_folder=True)
    path.write_bytes(b"\x00" + b"legacyplain")
    assert mgr.load_game_data("old") == b"legacyplain"


def test_legacy_encrypted_file_is_loaded(mgr: SaveGameManager):
    aes = mgr.crypto_provider
    key = aes.generate_random_key(16)
    path = mgr.get_file_path("old_enc", auto_create_folder=True)
    path.write_bytes(b"\x01" + key + aes.encrypt("ancient save".encode("utf-8"), key))
    assert mgr.load_game("old_enc") == "ancient save"


def test_absence_semantics(mgr: SaveGameManager):
    assert mgr.load_game_data("nonexistent") is None
    assert mgr.load_game("nonexistent") is None
    assert mgr.exists_save_data("nonexistent") is False
    assert mgr.delete_save_data("nonexistent") is False
    assert mgr.try_load_game("nonexistent") == (False, None)


def test_invalid_input_is_rejected(mgr: SaveGameManager, store_dir: Path):
    assert mgr.save_game_data("", b"x") is False
    assert mgr.save_game_data(None, b"x") is False
    assert mgr.save_game_data("slot", None) is False
    assert mgr.save_game("slot", None) is False
    assert mgr.load_game_data("") is None
    assert mgr.get_file_path("") is None
    assert mgr.exists_save_data("") is False
    assert not store_dir.exists()


def test_invalid_path_name_loads_as_absent(mgr: SaveGameManager):
    assert mgr.load_game_data("a\x00b") is None
    assert mgr.load_game("a\x00b") is None
    assert mgr.exists_save_data("a\x00b") is False
    assert mgr.save_game("a\x00b", "x") is False


@pytest.mark.parametrize("data", [b"abc", 5, ["a"], bytearray(b"abc")])
def test_save_game_rejects_non_text(mgr: SaveGameManager, store_dir: Path, data):
    assert mgr.save_game("slot", data) is False
    assert not store_dir.exists()


@pytest.mark.parametrize("data", [5, "text", 3.5, {"a": 1}])
def test_save_game_data_rejects_non_bytes(mgr: SaveGameManager, store_dir: Path, data):
    assert mgr.save_game_data("slot", data, encrypt=False) is False
    assert not store_dir.exists()


def test_save_game_data_accepts_bytes_like(mgr: SaveGameManager):
    assert mgr.save_game_data("ba", bytearray(b"abc"), encrypt=False)
    assert mgr.save_game_data("mv", memoryview(b"xyz"), encrypt=True)
    assert mgr.load_game_data("ba") == b"abc"
    assert mgr.load_game_data("mv") == b"xyz"


def test_unencodable_text_reports_false(mgr: SaveGameManager):
    assert mgr.save_game("slot", "\ud800") is False


def test_records_with_newlines_are_stored_verbatim(mgr: SaveGameManager):
    payload = b"line1\nline2\r\nline3\n"
    assert mgr.save_game_data("nl", payload, encrypt=False, compress=False)
    mgr.dispose()
    assert (mgr.store_path / "nl.sav").read_bytes() == b"\x00\x00" + payload


def test_undecodable_file_loads_as_none(mgr: SaveGameManager):
    path = mgr.get_file_path("broken", auto_create_folder=True)
    path.write_bytes(b"\x01\x02\x03")
    assert mgr.load_game_data("broken") is None
    assert mgr.try_load_game_data("broken") == (False, None)


def test_non_utf8_payload_loads_as_bytes_only(mgr: SaveGameManager):
    assert mgr.save_game_data("bin", b"\xff\xfe\xfd", encrypt=False)
    assert mgr.load_game_data("bin") == b"\xff\xfe\xfd"
    assert mgr.load_game("bin") is None


def test_try_load(mgr: SaveGameManager):
    assert mgr.save_game("slot", "data")
    assert mgr.try_load_game("slot") == (True, "data")
    assert mgr.try_load_game_data("slot") == (True, b"data")


def test_decode_in_memory_record(mgr: SaveGameManager):
    assert mgr.save_game("slot", "in memory", compress=True)
    raw = mgr.get_file_path("slot").read_bytes()
    assert mgr.decode_game(raw) == "in memory"
    assert mgr.decode_game_data(b"\x00\x00abc") == b"abc"
    assert mgr.decode_game_data(b"") is None


def test_delete(mgr: SaveGameManager):
    assert mgr.save_game("slot", "bye")
    assert mgr.delete_save_data("slot") is True
    assert not mgr.exists_save_data("slot")
    assert "slot" not in mgr._handles
    assert mgr.load_game("slot") is None


def test_encrypt_failure_reports_false_and_keeps_previous_file(store_dir: Path):
    good = SaveGameManager(store_path=store_dir)
    assert good.save_game("slot", "previous", encrypt=False)
    good.dispose()

    bad = SaveGameManager(store_path=store_dir, crypto_provider=FailingCryptoProvider())
    assert bad.save_game("slot", "next", encrypt=True) is False
    assert bad.save_game("slot", "plain is fine", encrypt=False) is True
    bad.dispose()

    with SaveGameManager(store_path=store_dir) as reader:
        assert reader.load_game("slot") == "plain is fine"


def test_compress_failure_reports_false(store_dir: Path):
    with SaveGameManager(store_path=store_dir, compression_provider=FailingCompressionProvider()) as m:
        assert m.save_game("slot", "data", compress=True) is False
        assert not m.exists_save_data("slot")


def test_unwritable_store_reports_false(tmp_path: Path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")
    with SaveGameManager(store_path=blocker / "saves") as m:
        assert m.get_file_path("slot", auto_create_folder=True) is None
        assert m.save_game("slot", "data") is False


def test_custom_providers_are_used(store_dir: Path):
    xor = XorCryptoProvider()
    with SaveGameManager(store_path=store_dir, crypto_provider=xor) as m:
        assert m.crypto_provider is xor
        assert m.save_game("slot", "xor'd", encrypt=True)
        raw = m.get_file_path("slot").read_bytes()
        assert raw[18:21] == XorCryptoProvider.MARKER
        assert m.load_game("slot") == "xor'd"


def test_config_defaults_drive_flags(store_dir: Path):
    config = SaveGameConfig(store_path=store_dir, file_extension="dat", encrypt=False, compress=True)
    with SaveGameManager(config=config) as m:
        assert m.store_path == store_dir
        assert m.save_game("slot", "configured " * 20)
        path = m.get_file_path("slot")
        assert path.name == "slot.dat"
        assert path.read_bytes()[:2] == b"\x00\x01"
        assert m.load_game("slot") == "configured " * 20


def test_dispose_closes_handles_and_is_idempotent(store_dir: Path):
    m = SaveGameManager(store_path=store_dir)
    assert m.save_game("a", "1")
    assert m.save_game("b", "2")
    handles = list(m._handles.values())
    m.dispose()
    assert all(h.closed for h in handles)
    m.dispose()

    with SaveGameManager(store_path=store_dir) as reader:
        assert reader.load_game("a") == "1"
        assert reader.load_game("b") == "2"


def test_context_manager_disposes(store_dir: Path):
    with SaveGameManager(store_path=store_dir) as m:
        assert m.save_game("slot", "x")
    assert m._handles is None
