"""Tests for response normalization."""

import json
from decimal import Decimal

import pytest

from poloniex_api.api.coerce import to_bool, to_decimal, to_int
from poloniex_api.api.models import (
    LadderEntry,
    OrderBook,
    OrderResult,
    Ticker,
    Trade,
    decode_ladder,
)
from poloniex_api.api.normalize import (
    Many,
    ShapeHint,
    Single,
    detect_market_list_shape,
    detect_market_shape,
    looks_like_market,
    normalize,
    parse_json,
    raise_for_exchange_error,
    split_volume,
)
from poloniex_api.errors import DecodeError, ExchangeError


def raw(payload) -> bytes:
    return json.dumps(payload).encode()


class TestCoercion:
    """Tests for the shared numeric coercion helpers."""

    def test_string_and_number_agree(self):
        from_string = to_decimal("0.00005730")
        from_number = to_decimal(parse_json(b"5.73e-5"))
        assert from_string == from_number == Decimal("0.0000573")

    def test_json_numbers_parse_as_decimal(self):
        assert parse_json(b"[0.1]") == [Decimal("0.1")]

    def test_integer_number(self):
        assert to_decimal(1164) == Decimal(1164)

    @pytest.mark.parametrize("value", ["bad", "", "1,5", "NaN", "Infinity", "0x10", "1e"])
    def test_bad_numeric_string(self, value):
        with pytest.raises(DecodeError):
            to_decimal(value, "rate")

    @pytest.mark.parametrize("value", [True, None, [], {}])
    def test_wrong_type(self, value):
        with pytest.raises(DecodeError):
            to_decimal(value, "rate")

    @pytest.mark.parametrize("value", [" 1.0 ", "1.0\n", "\t5"])
    def test_whitespace_not_accepted(self, value):
        with pytest.raises(DecodeError):
            to_decimal(value, "rate")
        with pytest.raises(DecodeError):
            to_int(value, "rate")

    def test_error_names_field(self):
        with pytest.raises(DecodeError, match="rate"):
            to_decimal("abc", "rate")

    def test_to_int(self):
        assert to_int("6325758") == 6325758
        assert to_int(147142) == 147142
        assert to_int(Decimal("18849")) == 18849
        with pytest.raises(DecodeError):
            to_int(Decimal("1.5"))
        with pytest.raises(DecodeError):
            to_int("12a")

    def test_to_bool(self):
        assert to_bool("0") is False
        assert to_bool(1) is True
        assert to_bool(False) is False


class TestLadder:
    """Tests for tuple-encoded price ladders."""

    def test_decode_entry(self):
        entry = LadderEntry.from_json(["0.00007600", 1164])
        assert entry.price == Decimal("0.00007600")
        assert entry.quantity == Decimal(1164)

    def test_numeric_price_accepted(self):
        ladder = decode_ladder(parse_json(b"[[0.00007600, 1164], [0.00007620, 1300]]"), "asks")
        assert [e.price for e in ladder] == [Decimal("0.000076"), Decimal("0.0000762")]

    def test_bad_price_fails_whole_ladder(self):
        with pytest.raises(DecodeError, match="asks"):
            decode_ladder([["0.00007600", 1164], ["bad", 1164]], "asks")

    @pytest.mark.parametrize("entry", [["0.1"], ["0.1", 1, 2], "0.1", {"price": "0.1"}])
    def test_wrong_arity(self, entry):
        with pytest.raises(DecodeError):
            decode_ladder([entry], "bids")

    def test_ladder_must_be_array(self):
        with pytest.raises(DecodeError):
            decode_ladder(None, "bids")


class TestRecords:
    """Tests for record decoding."""

    def test_ticker(self, sample_ticker_response):
        ticker = Ticker.from_json(sample_ticker_response["BTC_LTC"])
        assert ticker.id == 50
        assert ticker.last == Decimal("0.0251")
        assert ticker.is_frozen is False
        assert ticker.high_24hr == Decimal("0.026")

        minimal = Ticker.from_json(sample_ticker_response["BTC_NXT"])
        assert minimal.id is None
        assert minimal.high_24hr is None

    def test_ticker_missing_field(self):
        with pytest.raises(DecodeError, match="lowestAsk"):
            Ticker.from_json({"last": "1"})

    def test_order_book(self, sample_order_book):
        book = OrderBook.from_json(sample_order_book)
        assert book.seq == 18849
        assert book.is_frozen is False
        assert book.best_ask == LadderEntry(Decimal("0.00007600"), Decimal(1164))
        assert book.best_bid.price == Decimal("0.00006901")

    def test_private_trade(self):
        trade = Trade.from_json({
            "globalTradeID": 25129732, "tradeID": "6325758", "date": "2016-04-05 08:08:40",
            "rate": "0.02565498", "amount": "0.10000000", "total": "0.00256549", "fee": "0.00200000",
            "orderNumber": "34225313575", "type": "sell", "category": "exchange",
        })
        assert trade.trade_id == 6325758
        assert trade.order_number == 34225313575
        assert trade.fee == Decimal("0.002")

    def test_trade_id_as_number(self):
        trade = Trade.from_json({
            "tradeID": 147142, "date": "2016-03-14 01:04:36", "type": "buy",
            "rate": "0.00018500", "amount": "455.34206390", "total": "0.08423828",
        })
        assert trade.trade_id == 147142
        assert trade.fee is None

    def test_order_result_with_trade_list(self):
        result = OrderResult.from_json(
            {"orderNumber": 31226040, "resultingTrades": [
                {"amount": "338.8732", "date": "2014-10-18 23:03:21", "rate": "0.00000173",
                 "total": "0.00058625", "tradeID": "16164", "type": "buy"}]},
            "BTC_ETH",
        )
        assert result.order_number == 31226040
        assert list(result.resulting_trades) == ["BTC_ETH"]
        assert result.resulting_trades["BTC_ETH"][0].trade_id == 16164

    def test_order_result_with_trade_mapping(self):
        result = OrderResult.from_json({"success": 1, "orderNumber": "239574176", "resultingTrades": {"BTC_BTS": []}})
        assert result.order_number == 239574176
        assert result.resulting_trades == {"BTC_BTS": []}
        assert result.success is True


class TestShapeDetection:
    """Tests for singleton-vs-collection detection."""

    def test_market_names(self):
        assert looks_like_market("BTC_LTC")
        assert looks_like_market("USDT_BTC")
        assert not looks_like_market("asks")
        assert not looks_like_market("totalBTC")

    def test_bare_record(self, sample_order_book):
        result = detect_market_shape(sample_order_book, OrderBook.from_json, OrderBook.RECORD_KEYS)
        assert isinstance(result, Single)
        assert result.as_mapping("BTC_NXT") == {"BTC_NXT": OrderBook.from_json(sample_order_book)}

    def test_market_mapping(self, sample_order_book):
        result = detect_market_shape({"BTC_NXT": sample_order_book}, OrderBook.from_json, OrderBook.RECORD_KEYS)
        assert isinstance(result, Many)
        assert list(result.values) == ["BTC_NXT"]

    def test_empty_object_is_mapping(self):
        result = detect_market_shape({}, OrderBook.from_json)
        assert isinstance(result, Many)
        assert result.values == {}

    def test_list_shapes(self):
        single = detect_market_list_shape([], Trade.from_json)
        many = detect_market_list_shape({"BTC_LTC": []}, Trade.from_json)
        assert isinstance(single, Single) and single.value == []
        assert isinstance(many, Many) and many.values == {"BTC_LTC": []}


class TestSplitVolume:
    """Tests for the 24h volume totals/sub-map split."""

    def test_mixed_payload(self):
        summary = split_volume({"totalBTC": "10.0", "BTC_LTC": {"BTC": "1.0", "LTC": "2.0"}})
        assert summary.totals == {"BTC": Decimal("10.0")}
        assert summary.markets == {"BTC_LTC": {"BTC": Decimal("1.0"), "LTC": Decimal("2.0")}}

    def test_split_is_type_based(self):
        # A scalar under a market-looking key is still a total, an object
        # under a total-looking key is still a market entry
        summary = split_volume(parse_json(b'{"BTC_NEW": 3.5, "totalXMR": {"XMR": "1"}}'))
        assert summary.totals == {"BTC_NEW": Decimal("3.5")}
        assert summary.markets == {"totalXMR": {"XMR": Decimal("1")}}

    def test_numeric_total(self):
        summary = split_volume(parse_json(b'{"totalUSDT": 81.5}'))
        assert summary.totals == {"USDT": Decimal("81.5")}

    @pytest.mark.parametrize("value", [None, True, ["1"]])
    def test_unexpected_value(self, value):
        with pytest.raises(DecodeError):
            split_volume({"totalBTC": value})

    def test_bad_sub_value(self):
        with pytest.raises(DecodeError, match="BTC_LTC.LTC"):
            split_volume({"BTC_LTC": {"BTC": "1.0", "LTC": "x"}})


class TestExchangeErrors:
    """Tests for exchange-reported error detection."""

    def test_error_field(self):
        with pytest.raises(ExchangeError) as exc_info:
            raise_for_exchange_error({"error": "Invalid nonce"}, "returnBalances")
        assert exc_info.value.message == "Invalid nonce"
        assert exc_info.value.command == "returnBalances"

    def test_success_zero(self):
        with pytest.raises(ExchangeError, match="Press Generate"):
            raise_for_exchange_error({"success": 0, "response": "Press Generate.."})

    def test_success_one_passes(self):
        raise_for_exchange_error({"success": 1, "message": "ok"})

    def test_empty_error_ignored(self):
        raise_for_exchange_error({"error": "", "success": 1})

    def test_non_object_ignored(self):
        raise_for_exchange_error([{"error": "x"}])


class TestNormalize:
    """Tests for the normalize entry point."""

    def test_malformed_json(self):
        with pytest.raises(DecodeError, match="malformed JSON"):
            normalize(b"<html>oops</html>", ShapeHint.RECORD, Ticker.from_json)

    def test_exchange_error_wins_over_decode(self):
        with pytest.raises(ExchangeError) as exc_info:
            normalize(raw({"error": "Invalid nonce"}), ShapeHint.DECIMAL_MAP)
        assert str(exc_info.value) == "Invalid nonce"

    def test_decimal_map_mixed_representations(self):
        result = normalize(b'{"BTC": "0.00005730", "LTC": 5.73e-5}', ShapeHint.DECIMAL_MAP)
        assert result["BTC"] == result["LTC"]

    def test_shape_uniformity(self, sample_order_book):
        single = normalize(
            raw(sample_order_book), ShapeHint.MARKET_RECORD, OrderBook.from_json,
            requested_pair="BTC_NXT", record_keys=OrderBook.RECORD_KEYS,
        )
        everything = normalize(
            raw({"BTC_NXT": sample_order_book}), ShapeHint.MARKET_RECORD, OrderBook.from_json,
            requested_pair="all", record_keys=OrderBook.RECORD_KEYS,
        )
        assert single == everything
        assert list(single) == ["BTC_NXT"]

    def test_single_record_for_all_request(self, sample_order_book):
        with pytest.raises(DecodeError):
            normalize(
                raw(sample_order_book), ShapeHint.MARKET_RECORD, OrderBook.from_json,
                requested_pair="all", record_keys=OrderBook.RECORD_KEYS,
            )

    def test_market_list_bare_array(self):
        result = normalize(b"[]", ShapeHint.MARKET_LIST, Trade.from_json, requested_pair="BTC_XCP")
        assert result == {"BTC_XCP": []}

    def test_market_list_empty_array_for_all(self):
        assert normalize(b"[]", ShapeHint.MARKET_LIST, Trade.from_json, requested_pair="all") == {}

    def test_market_list_populated_array_for_all(self):
        payload = [{"date": "2014-02-10 04:23:23", "type": "buy", "rate": "0.00007600", "amount": "140", "total": "0.01064"}]
        with pytest.raises(DecodeError, match="single-market"):
            normalize(raw(payload), ShapeHint.MARKET_LIST, Trade.from_json, requested_pair="all")

    def test_oversized_integer_is_decode_error(self):
        body = b'{"BTC": ' + b"1" * 5000 + b"}"
        with pytest.raises(DecodeError, match="malformed JSON"):
            normalize(body, ShapeHint.DECIMAL_MAP)

    def test_record_list_requires_array(self):
        with pytest.raises(DecodeError, match="expected array"):
            normalize(b"{}", ShapeHint.RECORD_LIST, Trade.from_json)

    def test_nested_decimal_map(self):
        result = normalize(
            raw({"exchange": {"BTC": "1.19042859"}, "lending": {"LTC": "11.99936230"}}),
            ShapeHint.NESTED_DECIMAL_MAP,
        )
        assert result["lending"]["LTC"] == Decimal("11.9993623")

    def test_string_map(self):
        result = normalize(raw({"BTC": "19YqztHmspv2egyD6jQM3yn81x5t5krVdJ"}), ShapeHint.STRING_MAP)
        assert result == {"BTC": "19YqztHmspv2egyD6jQM3yn81x5t5krVdJ"}

    def test_record_shape_needs_decoder(self):
        with pytest.raises(ValueError):
            normalize(b"{}", ShapeHint.RECORD)
