"""
Ledger State Machine

Implements the three ledger operations on top of a LedgerStore:

- initialize: create an account and its holdings at one or more banks
- adjust: deposit to or withdraw from one holding (floor-at-zero)
- query: read an account's bank list or one holding's balance

The machine keeps no state between invocations. The store is passed to
every call and all state is read back from it.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence

from . import codec
from .config import LedgerConfig, get_config
from .errors import (
    ArgumentCountError, InvalidAmountError, InvalidFunctionError, NotFoundError,
    StoreError, StoreReadError, StoreWriteError, UnknownMethodError
)
from .logging_config import log_action
from .storage import LedgerStore


logger = logging.getLogger(__name__)


QUERY_FUNCTION = "query"


class AdjustMethod(Enum):
    """Balance adjustments accepted by adjust()"""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


def apply_adjustment(balance: int, method: Optional[AdjustMethod], amount: int) -> int:
    """
    Compute a holding's new balance.

    Withdrawals floor at zero: any withdrawal that would leave the balance at
    or below zero yields exactly zero. A method of None leaves the balance
    unchanged.
    """
    if method is AdjustMethod.DEPOSIT:
        return balance + amount
    if method is AdjustMethod.WITHDRAW:
        if balance - amount > 0:
            return balance - amount
        return 0
    return balance


class LedgerStateMachine:
    """Stateless handlers for the initialize/adjust/query operations"""

    def __init__(self, config: Optional[LedgerConfig] = None):
        self.config = config or get_config()

    # Key helpers

    def account_key(self, account: str) -> str:
        return codec.account_key(account, escape=self.config.escape_keys)

    def holding_key(self, account: str, bank: str) -> str:
        return codec.holding_key(account, bank, escape=self.config.escape_keys)

    # Store access

    def _get(self, store: LedgerStore, key: str) -> Optional[bytes]:
        try:
            return store.get(key)
        except StoreError as e:
            raise StoreReadError(key, e) from e

    def _put(self, store: LedgerStore, key: str, value: bytes) -> None:
        try:
            store.put(key, value)
        except StoreError as e:
            raise StoreWriteError(key, e) from e

    # Operations

    def initialize(self, store: LedgerStore, args: Sequence[str]) -> None:
        """
        Create an account and its holdings.

        Args:
            store: Ledger store to write to
            args: [account, bank1, amount1, bank2, amount2, ...]

        Every bank name and amount is validated before the first write. Writes are then
        issued holding by holding, with the account's bank list last. A store
        failure stops the sequence and earlier writes remain, unless
        atomic_initialize is set and the store is transactional.
        """
        if len(args) % 2 != 1:
            raise ArgumentCountError(
                "Expecting odd number of arguments: [name, bank1, amount1, bank2, amount2, ......]"
            )
        if len(args) <= 1:
            raise ArgumentCountError(
                "Too few arguments. Expecting at least 3 (at least one bank account)"
            )

        account = args[0]
        holdings = [
            (codec.check_bank_name(args[i]), codec.parse_amount(args[i + 1]))
            for i in range(1, len(args), 2)
        ]

        if self.config.atomic_initialize and store.transactional:
            with store.atomic():
                self._write_account(store, account, holdings)
        else:
            self._write_account(store, account, holdings)

        return None

    def _write_account(self, store: LedgerStore, account: str, holdings) -> None:
        banks: List[str] = []
        for bank, amount in holdings:
            key = self.holding_key(account, bank)
            log_action(logger, "info", f"Holding {bank} set to {amount}",
                       operation="init", key=key)
            self._put(store, key, codec.encode_balance(amount))
            banks.append(bank)

        self._put(store, self.account_key(account), codec.encode_bank_list(banks))

    def adjust(self, store: LedgerStore, args: Sequence[str]) -> None:
        """
        Deposit to or withdraw from one holding.

        Args:
            store: Ledger store to read and write
            args: [method, account, amount, bank]
        """
        if len(args) != 4:
            raise ArgumentCountError("Incorrect number of arguments. Expecting 4")

        method_name, account, amount_text, bank = args
        try:
            method = AdjustMethod(method_name)
        except ValueError:
            if self.config.strict_methods:
                raise UnknownMethodError(method_name)
            method = None

        amount = codec.parse_amount(amount_text)

        key = self.holding_key(account, bank)
        with store.serialize(key):
            raw = self._get(store, key)
            if raw is None:
                raise NotFoundError(key)
            balance = codec.decode_balance(key, raw)

            new_balance = apply_adjustment(balance, method, amount)
            if not codec.in_range(new_balance):
                raise InvalidAmountError(amount_text, f"Balance out of range for {key}: {new_balance}")
            log_action(logger, "info", f"Holding {bank} adjusted to {new_balance}", operation="invoke", key=key,
                       extra={"method": method_name, "amount": amount, "previous": balance})

            self._put(store, key, codec.encode_balance(new_balance))
        return None

    def query(self, store: LedgerStore, function: str, args: Sequence[str]) -> bytes:
        """
        Read an account's bank list or one holding's balance.

        Args:
            store: Ledger store to read from
            function: Must be "query"
            args: [account] or [account, bank]

        Returns:
            JSON bytes of {"Name": key, "List": banks} or
            {"Name": key, "Amount": balance}
        """
        if function != QUERY_FUNCTION:
            raise InvalidFunctionError(
                function, "Invalid query function name. Expecting \"query\""
            )
        if len(args) > 2:
            raise ArgumentCountError(
                "Incorrect number of arguments. Expecting name of the account holder followed by the bank name"
            )
        if not args:
            raise ArgumentCountError(
                "Incorrect number of arguments. Expecting name of the account holder"
            )

        bank = args[1] if len(args) == 2 else None
        if bank is None:
            key = self.account_key(args[0])
        else:
            key = self.holding_key(args[0], bank)

        raw = self._get(store, key)
        if raw is None:
            raise NotFoundError(key)

        response = codec.encode_query_response(key, codec.query_label(bank), raw)
        log_action(logger, "info", f"Query Response:{response.decode('utf-8')}",
                   operation="query", key=key)
        return response
