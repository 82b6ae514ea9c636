import pytest

from nomkit.address import (
    Address,
    AddressError,
    bech32_decode,
    bech32_encode,
    bitcoin_script_pubkey,
    convert_bits,
    decode_address,
    encode_address,
)

SOURCE_ADDRESS = "nomic100000aeu2lh0jrrnmn2npc88typ25u7t3aa64x"


def test_parse_and_display_round_trip():
    addr = Address.parse(SOURCE_ADDRESS)
    assert len(addr.data) == 20
    assert str(addr) == SOURCE_ADDRESS


def test_parse_rejects_other_prefix():
    other = bech32_encode("cosmos", convert_bits(bytes(20), 8, 5, True))
    with pytest.raises(AddressError):
        Address.parse(other)


def test_corrupted_checksum_rejected():
    corrupted = SOURCE_ADDRESS[:-1] + ("q" if SOURCE_ADDRESS[-1] != "q" else "p")
    with pytest.raises(AddressError):
        bech32_decode(corrupted)


def test_mixed_case_rejected():
    with pytest.raises(AddressError):
        bech32_decode("Nomic" + SOURCE_ADDRESS[5:])


def test_upper_case_accepted():
    hrp, data = bech32_decode(SOURCE_ADDRESS.upper())
    assert hrp == "nomic"
    assert bytes(convert_bits(data, 5, 8, False)) == Address.parse(SOURCE_ADDRESS).data


def test_convert_bits_round_trip():
    raw = bytes(range(20))
    five = convert_bits(raw, 8, 5, True)
    assert all(0 <= v < 32 for v in five)
    assert bytes(convert_bits(five, 5, 8, False)) == raw


def test_convert_bits_rejects_bad_padding():
    with pytest.raises(AddressError):
        convert_bits([31], 5, 8, False)


def test_encode_decode_address():
    raw = bytes([7] * 20)
    text = encode_address(raw)
    assert text.startswith("nomic1")
    assert decode_address(text) == raw
    assert Address(raw) == Address.parse(text)


def test_address_length_enforced():
    with pytest.raises(AddressError):
        Address(bytes(19))


def test_p2pkh_script():
    script = bitcoin_script_pubkey("1A1zP1eP5QGefi2DMPTfTL5SLv7DivfNa")
    assert script == bytes.fromhex("76a91462e907b15cbf27d5425399ebf6f0fb50ebb88f1888ac")


def test_segwit_v0_script():
    program = bytes([3] * 20)
    text = bech32_encode("bc", [0] + convert_bits(program, 8, 5, True))
    assert bitcoin_script_pubkey(text) == b"\x00\x14" + program


def test_segwit_v1_requires_bech32m():
    program = bytes([3] * 32)
    text = bech32_encode("bc", [1] + convert_bits(program, 8, 5, True))
    with pytest.raises(AddressError):
        bitcoin_script_pubkey(text)


def test_invalid_bitcoin_address():
    with pytest.raises(AddressError):
        bitcoin_script_pubkey("not-an-address0")