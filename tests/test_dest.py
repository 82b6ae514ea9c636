import hashlib

import pytest

from nomkit.address import Address
from nomkit.app import AppError
from nomkit.dest import Dest, IbcDest

ADDR = Address(bytes(range(20)))
OTHER = Address(bytes([7] * 20))


def make_ibc(**overrides):
    fields = dict(
        source_port="transfer",
        source_channel="channel-0",
        receiver="osmo1receiverplaceholder",
        sender=str(ADDR),
        timeout_timestamp=1_700_000_000_000_000_000,
        memo="hello",
    )
    fields.update(overrides)
    return IbcDest(**fields)


def test_address_dest_wire_bytes():
    assert Dest(address=ADDR).encode() == b"\x00" + bytes(range(20))


def test_address_dest_round_trip():
    dest = Dest(address=ADDR)
    assert Dest.decode(dest.encode()) == dest
    assert Dest.from_base64(dest.to_base64()) == dest


def test_ibc_dest_round_trip():
    dest = Dest(ibc=make_ibc())
    encoded = dest.encode()
    assert encoded[0] == 1
    assert Dest.decode(encoded) == dest
    assert Dest.from_base64(dest.to_base64()) == dest


def test_ibc_encode_starts_with_port_length_prefix():
    encoded = make_ibc().encode()
    assert encoded[:9] == b"\x08transfer"
    assert IbcDest.decode(encoded) == make_ibc()


def test_dest_needs_exactly_one_variant():
    with pytest.raises(AppError):
        Dest()
    with pytest.raises(AppError):
        Dest(address=ADDR, ibc=make_ibc())


def test_from_base64_rejects_garbage():
    with pytest.raises(AppError, match="Failed to decode base64"):
        Dest.from_base64("not base64!!")


def test_decode_truncated_raises():
    encoded = Dest(ibc=make_ibc()).encode()
    with pytest.raises(AppError):
        Dest.decode(encoded[:-3])


def test_decode_unknown_variant():
    with pytest.raises(AppError):
        Dest.decode(b"\x05" + bytes(20))


def test_commitment_bytes_for_address_is_raw_address():
    assert Dest(address=ADDR).commitment_bytes() == ADDR.data


def test_commitment_bytes_for_ibc_hashes_the_ibc_encoding():
    ibc = make_ibc()
    commitment = Dest(ibc=ibc).commitment_bytes()
    assert len(commitment) == 32
    assert commitment == hashlib.sha256(ibc.encode()).digest()
    assert commitment != Dest(ibc=make_ibc(memo="other")).commitment_bytes()


def test_to_receiver_addr():
    assert Dest(address=ADDR).to_receiver_addr() == str(ADDR)
    assert Dest(ibc=make_ibc()).to_receiver_addr() == "osmo1receiverplaceholder"


def test_to_output_script():
    scripts = {ADDR: b"\x00\x14" + bytes(20)}
    assert Dest(address=ADDR).to_output_script(scripts) == b"\x00\x14" + bytes(20)
    assert Dest(address=OTHER).to_output_script(scripts) is None
    assert Dest(ibc=make_ibc()).to_output_script(scripts) is None


def test_sender_address_parses():
    assert make_ibc().sender_address() == ADDR


def test_sender_address_invalid():
    with pytest.raises(AppError):
        make_ibc(sender="garbage").sender_address()


def test_source_channel_and_port():
    ibc = make_ibc()
    assert ibc.source_channel_checked() == "channel-0"
    assert ibc.source_port_checked() == "transfer"


@pytest.mark.parametrize("channel", ["chan-0", "channel-x", "channel-", "channel 1"])
def test_invalid_channel(channel):
    with pytest.raises(AppError, match="Invalid channel id"):
        make_ibc(source_channel=channel).source_channel_checked()


@pytest.mark.parametrize("port", ["t", "bad port", "x" * 129])
def test_invalid_port(port):
    with pytest.raises(AppError, match="Invalid port id"):
        make_ibc(source_port=port).source_port_checked()


def test_memo_text_and_length_limit():
    assert make_ibc().memo_text() == "hello"
    with pytest.raises(AppError):
        make_ibc(memo="m" * 256).memo_text()
    with pytest.raises(AppError):
        make_ibc(memo="m" * 256).encode()


def test_timeout_out_of_range():
    with pytest.raises(AppError):
        make_ibc(timeout_timestamp=2**64).encode()