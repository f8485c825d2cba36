from decimal import Decimal

import pytest

from taxbitrec.csv_normalizer import (
    decode_csv,
    decode_line,
    encode_display,
    encode_line,
    parse_csv,
    record_digest,
    write_csv,
)
from taxbitrec.errors import DecodeError
from taxbitrec.schemas import HEADER, TaxBitRec, TaxBitRecType

BUY_LINE = '"2021-07-01T00:00:00Z","Buy",,,,"1.5","BTC","wallet-1",,,"tx123",""'
HEADER_LINE = ",".join(HEADER)

LINES = [
    BUY_LINE,
    '2021-07-02T10:30:00.125Z,Sale,0.25,BTC,wallet-1,8500.00,USD,bank,1.50,USD,tx124,',
    '2021-07-03T00:00:00Z,Transfer In,,,,2,ETH,wallet-2,,,,0xabc',
    '2021-07-04T00:00:00Z,Gift Send,10,ADA,wallet-3,,,,,,,',
    '2021-07-05T00:00:00Z,Transfer Out,1,ETH,wallet-2,,,,0.001,ETH,tx9,"0xdef"',
    '2021-07-06T00:00:00Z,Gift Received,,,,5,DOT,"wallet, main",,,,',
    '2021-07-07T00:00:00Z,Income,,,,0.00000001,BTC,,,,staking-1,',
]


def _csv(*lines: str) -> bytes:
    return ("\n".join((HEADER_LINE,) + lines) + "\n").encode("utf-8")


def test_decode_buy_line():
    tbr = decode_line(BUY_LINE)
    assert tbr.time == 1625097600000
    assert tbr.kind is TaxBitRecType.Buy
    assert tbr.sent_quantity is None
    assert tbr.sent_currency == ""
    assert tbr.received_quantity == Decimal("1.5")
    assert tbr.received_currency == "BTC"
    assert tbr.receiving_destination == "wallet-1"
    assert tbr.fee_quantity is None
    assert tbr.exchange_transaction_id == "tx123"
    assert tbr.blockchain_transaction_hash == ""
    assert tbr.get_asset() == "BTC"


def test_unknown_label_fails():
    line = BUY_LINE.replace('"Buy"', '"Unknown Label"')
    with pytest.raises(DecodeError) as ei:
        decode_line(line, line_number=3)
    err = ei.value
    assert err.column == "Transaction Type"
    assert err.value == "Unknown Label"
    assert err.line_number == 3
    assert "unknown transaction type label" in err.reason
    assert "line 3" in str(err)


def test_label_match_is_case_sensitive():
    with pytest.raises(DecodeError):
        decode_line(BUY_LINE.replace('"Buy"', '"buy"'))
    with pytest.raises(DecodeError):
        decode_line(BUY_LINE.replace('"Buy"', '"TransferIn"'))


def test_empty_quantity_is_absent_not_zero():
    tbr = decode_line(BUY_LINE)
    assert tbr.sent_quantity is None
    assert tbr.sent_quantity != Decimal("0")


def test_two_word_labels():
    kinds = [decode_line(line).kind for line in LINES]
    assert kinds == [
        TaxBitRecType.Buy,
        TaxBitRecType.Sale,
        TaxBitRecType.TransferIn,
        TaxBitRecType.GiftSent,
        TaxBitRecType.TransferOut,
        TaxBitRecType.GiftReceived,
        TaxBitRecType.Income,
    ]


def test_wrong_field_count():
    with pytest.raises(DecodeError) as ei:
        decode_line("2021-07-01T00:00:00Z,Buy,1")
    assert "expected 12 fields, got 3" in str(ei.value)
    with pytest.raises(DecodeError):
        decode_line("")


def test_bad_timestamp():
    with pytest.raises(DecodeError) as ei:
        decode_line(BUY_LINE.replace("2021-07-01T00:00:00Z", "yesterday"))
    assert ei.value.column == "Date and Time"
    assert "bad timestamp" in ei.value.reason


@pytest.mark.parametrize("bad", ["1.2.3", "abc", "NaN", "Infinity"])
def test_bad_decimal(bad):
    with pytest.raises(DecodeError) as ei:
        decode_line(BUY_LINE.replace('"1.5"', f'"{bad}"'))
    assert ei.value.column == "Received Quantity"
    assert "bad decimal" in ei.value.reason


@pytest.mark.parametrize(
    "stamp,expected",
    [
        ("2021-07-01T00:00:00Z", 1625097600000),
        ("2021-07-01T02:00:00+02:00", 1625097600000),
        ("2021-06-30T20:00:00-04:00", 1625097600000),
        ("2021-07-01 00:00:00", 1625097600000),
        ("2021-07-01T00:00:00.250Z", 1625097600250),
        ("1969-12-31T23:59:59Z", -1000),
    ],
)
def test_timestamps_are_utc(stamp, expected):
    assert decode_line(BUY_LINE.replace("2021-07-01T00:00:00Z", stamp)).time == expected


def test_display_render():
    tbr = decode_line(BUY_LINE)
    assert encode_display(tbr) == "2021-07-01T00:00:00.000+00:00,Buy,,,,1.5,BTC,wallet-1,,,tx123,"
    assert str(tbr) == encode_display(tbr)

    tbr.kind = TaxBitRecType.GiftSent
    tbr.sent_quantity = Decimal("1.50")
    tbr.fee_quantity = Decimal("1E+2")
    assert encode_display(tbr) == (
        "2021-07-01T00:00:00.000+00:00,GiftSent,1.5,,,1.5,BTC,wallet-1,100,,tx123,"
    )


def test_display_of_default():
    assert encode_display(TaxBitRec.default()) == "1970-01-01T00:00:00.000+00:00,Unknown,,,,,,,,,,"


def test_encode_line_keeps_labels_and_decimal_text():
    tbr = decode_line("2021-07-04T00:00:00Z,Gift Send,1.50,ADA,wallet-3,,,,0.10,ADA,,")
    assert encode_line(tbr) == "2021-07-04T00:00:00.000Z,Gift Send,1.50,ADA,wallet-3,,,,0.10,ADA,,"


def test_round_trip():
    for line in LINES:
        first = decode_line(line)
        again = decode_line(encode_line(first))
        assert again == first
        assert encode_line(again) == encode_line(first)


def test_parse_csv_collects_errors():
    data = _csv(
        LINES[0],
        LINES[1],
        BUY_LINE.replace('"Buy"', '"Unknown Label"'),
        "",
        LINES[2],
    )
    valid, errors = parse_csv(data)
    assert [r.kind for r in valid] == [TaxBitRecType.Buy, TaxBitRecType.Sale, TaxBitRecType.TransferIn]
    assert len(errors) == 1
    assert errors[0]["row_number"] == 4
    assert errors[0]["column"] == "Transaction Type"
    assert errors[0]["raw_row"][1] == "Unknown Label"


def test_parse_csv_header_checks():
    valid, errors = parse_csv(b"timestamp,type\n1,2\n")
    assert valid == []
    assert errors[0]["row_number"] == 1
    assert "Missing required columns" in errors[0]["error"]

    valid, errors = parse_csv(b"")
    assert valid == []
    assert errors[0]["error"] == "CSV has no header"


def test_parse_csv_tolerates_bom_and_padded_header():
    header = "\ufeff" + ", ".join(HEADER)
    data = (header + "\n" + BUY_LINE + "\n").encode("utf-8")
    valid, errors = parse_csv(data)
    assert errors == []
    assert valid == [decode_line(BUY_LINE)]


def test_decode_csv_is_strict():
    data = _csv(LINES[0], "2021-07-01T00:00:00Z,Buy")
    with pytest.raises(DecodeError) as ei:
        decode_csv(data)
    assert ei.value.line_number == 3


def test_write_csv_round_trip():
    records = [decode_line(line) for line in LINES]
    data = write_csv(records)
    assert data.decode("utf-8").splitlines()[0] == HEADER_LINE
    assert decode_csv(data) == records


def test_record_digest():
    a = decode_line(BUY_LINE)
    b = decode_line(BUY_LINE)
    assert record_digest(a) == record_digest(b)
    assert len(record_digest(a)) == 64
    b.exchange_transaction_id = "tx999"
    assert record_digest(a) != record_digest(b)


BIG_ROW = "2021-07-01T00:00:00Z,Buy,,,,1,BTC,,,," + "x" * 200_000 + ","


def test_timestamp_out_of_range_after_utc_shift():
    with pytest.raises(DecodeError) as ei:
        decode_line(BUY_LINE.replace("2021-07-01T00:00:00Z", "0001-01-01T00:00:00+01:00"))
    assert ei.value.column == "Date and Time"
    assert "out of range" in ei.value.reason

    with pytest.raises(DecodeError):
        decode_line(BUY_LINE.replace("2021-07-01T00:00:00Z", "9999-12-31T23:59:59-01:00"))


def test_one_digit_fraction():
    assert decode_line(BUY_LINE.replace("00:00:00Z", "00:00:00.1Z")).time == 1625097600100


def test_oversized_field_is_a_decode_error():
    with pytest.raises(DecodeError) as ei:
        decode_line(BIG_ROW, line_number=9)
    assert ei.value.line_number == 9
    assert "malformed CSV" in ei.value.reason


def test_parse_csv_keeps_going_after_unreadable_row():
    valid, errors = parse_csv(_csv(LINES[0], BIG_ROW, LINES[1]))
    assert [r.kind for r in valid] == [TaxBitRecType.Buy, TaxBitRecType.Sale]
    assert len(errors) == 1
    assert errors[0]["row_number"] == 3
    assert "malformed CSV" in errors[0]["error"]


def test_decode_csv_unreadable_row():
    with pytest.raises(DecodeError) as ei:
        decode_csv(_csv(LINES[0], BIG_ROW))
    assert ei.value.line_number == 3


def test_scientific_notation_text_is_kept():
    line = "2021-07-01T00:00:00Z,Buy,,,,1E+2,BTC,,,,,"
    tbr = decode_line(line)
    assert tbr.received_quantity == Decimal("100")
    assert encode_line(tbr).split(",")[5] == "1E+2"
    assert decode_line(encode_line(tbr)) == tbr
