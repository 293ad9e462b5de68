"""
Account Codec

Pure conversions between the domain model (account, bank, integer balance,
bank list) and the strings/bytes persisted in the ledger store.

Key layout
----------
"<account>"         -> comma-joined bank names
"<account>_<bank>"  -> decimal balance

Name components are escaped ("\\" -> "\\\\", "_" -> "\\_") so that no two
(account, bank) pairs share a holding key and no account key looks like a
holding key. Names free of "_" and "\\" encode to themselves.

Bank names may not contain "," because the bank list is comma-joined.
Stored balances share the signed 64-bit range of amount arguments.
"""

import json
import re
from typing import List, Optional

from .errors import InvalidAmountError, InvalidNameError, MalformedValueError


KEY_SEPARATOR = "_"
ESCAPE_CHAR = "\\"
BANK_LIST_SEPARATOR = ","

LABEL_LIST = "List"
LABEL_AMOUNT = "Amount"

# Same accepted range as a 64-bit signed integer
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

_INTEGER_RE = re.compile(r"[+-]?[0-9]+\Z")


def escape_component(name: str) -> str:
    """Escape a name so the key separator inside it is unambiguous"""
    return name.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2).replace(KEY_SEPARATOR, ESCAPE_CHAR + KEY_SEPARATOR)


def account_key(account: str, escape: bool = True) -> str:
    return escape_component(account) if escape else account


def holding_key(account: str, bank: str, escape: bool = True) -> str:
    """
    Derive the ledger key of one account's holding at one bank.

    With escape=False this is the literal account + "_" + bank concatenation,
    where ("a_b", "c") and ("a", "b_c") collide.
    """
    if escape:
        return escape_component(account) + KEY_SEPARATOR + escape_component(bank)
    return account + KEY_SEPARATOR + bank


def parse_amount(text: str) -> int:
    """
    Parse a base-10 integer argument.

    Accepts an optional leading sign followed by ASCII digits. Whitespace,
    underscores and values outside the signed 64-bit range are rejected.
    """
    if not isinstance(text, str) or not _INTEGER_RE.match(text):
        raise InvalidAmountError(text)
    value = int(text)
    if not in_range(value):
        raise InvalidAmountError(text, f"Amount out of range: {text}")
    return value


def in_range(value: int) -> bool:
    return INT_MIN <= value <= INT_MAX


def encode_balance(balance: int) -> bytes:
    return str(balance).encode("ascii")


def decode_balance(key: str, raw: bytes) -> int:
    """Decode a stored balance, raising MalformedValueError on bad bytes"""
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError:
        raise MalformedValueError(key, raw)
    if not _INTEGER_RE.match(text):
        raise MalformedValueError(key, raw)
    value = int(text)
    if not in_range(value):
        raise MalformedValueError(key, raw)
    return value


def check_bank_name(bank: str) -> str:
    """Reject bank names that would split the comma-joined bank list"""
    if BANK_LIST_SEPARATOR in bank:
        raise InvalidNameError(bank, f"Bank name {bank!r} must not contain \"{BANK_LIST_SEPARATOR}\"")
    return bank


def encode_bank_list(banks: List[str]) -> bytes:
    for bank in banks:
        check_bank_name(bank)
    return BANK_LIST_SEPARATOR.join(banks).encode("utf-8")


def encode_query_response(key: str, label: str, value: bytes) -> bytes:
    """Build the {"Name": key, label: value} response payload"""
    payload = {"Name": key, label: value.decode("utf-8", errors="replace")}
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def query_label(bank: Optional[str]) -> str:
    return LABEL_LIST if bank is None else LABEL_AMOUNT
