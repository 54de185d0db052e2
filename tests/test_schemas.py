"""Tests for request decoding: camelCase, legacy payloads, decimals and dates."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import TypeAdapter, ValidationError

from household_ledger.api.schemas import (
    AccountCreateRequest,
    AccountCreateV2,
    AccountPatch,
    PocketCreateV1,
    TransactionCreateRequest,
    TransactionCreateV1,
    TransactionCreateV2,
    TransactionPatch,
    TransactionResponse,
    TransferCreateRequest,
    TransferCreateV1,
    TransferCreateV2,
)
from household_ledger.domain.transactions import Transaction
from household_ledger.domain.value_objects import AccountScope, TransactionType
from household_ledger.exceptions import InvalidAmountError


class TestAccountPayloads:
    def test_current_shape(self) -> None:
        group_id = uuid4()
        payload = TypeAdapter(AccountCreateRequest).validate_python(
            {
                "name": "Joint",
                "groupId": str(group_id),
                "startingBalance": "10.50",
                "scope": "PERSONAL",
            }
        )

        assert isinstance(payload, AccountCreateV2)
        command = payload.to_command()
        assert command.group_id == group_id
        assert command.starting_balance == Decimal("10.50")
        assert command.scope == AccountScope.PERSONAL

    def test_legacy_pocket_shape(self) -> None:
        bank_id = uuid4()
        payload = TypeAdapter(AccountCreateRequest).validate_python(
            {"name": "Pocket", "bankId": str(bank_id)}
        )

        assert isinstance(payload, PocketCreateV1)
        command = payload.to_command()
        assert command.group_id == bank_id
        assert command.scope == AccountScope.HOUSEHOLD

    def test_neither_group_nor_bank_is_invalid(self) -> None:
        with pytest.raises(ValidationError):
            TypeAdapter(AccountCreateRequest).validate_python({"name": "Orphan"})

    def test_patch_accepts_bank_id(self) -> None:
        bank_id = uuid4()
        command = AccountPatch.model_validate({"bankId": str(bank_id)}).to_command()

        assert command.group_id == bank_id
        assert command.name is None
        assert command.starting_balance is None

    def test_snake_case_is_accepted(self) -> None:
        group_id = uuid4()
        payload = AccountCreateV2.model_validate({"name": "Joint", "group_id": str(group_id)})
        assert payload.group_id == group_id

    def test_name_is_stripped(self) -> None:
        payload = AccountCreateV2.model_validate({"name": "  Joint ", "groupId": str(uuid4())})
        assert payload.name == "Joint"


class TestTransactionPayloads:
    def _base(self, **extra) -> dict:
        return {"amount": "12.30", "type": "EXPENSE", "categoryId": str(uuid4()), **extra}

    def test_current_shape(self) -> None:
        account_id = uuid4()
        payload = TypeAdapter(TransactionCreateRequest).validate_python(
            self._base(accountId=str(account_id), date="2025-03-04")
        )

        assert isinstance(payload, TransactionCreateV2)
        command = payload.to_command()
        assert command.account_id == account_id
        assert command.amount == Decimal("12.30")
        assert command.transaction_date == date(2025, 3, 4)

    def test_legacy_pocket_shape(self) -> None:
        pocket_id = uuid4()
        payload = TypeAdapter(TransactionCreateRequest).validate_python(
            self._base(pocketId=str(pocket_id))
        )

        assert isinstance(payload, TransactionCreateV1)
        assert payload.to_command().account_id == pocket_id

    def test_datetime_is_truncated_to_date(self) -> None:
        payload = TransactionCreateV2.model_validate(
            self._base(accountId=str(uuid4()), date="2025-03-04T23:15:00+07:00")
        )
        assert payload.transaction_date == date(2025, 3, 4)

    def test_json_numbers_are_read_as_text(self) -> None:
        payload = TransactionCreateV2.model_validate(
            {**self._base(accountId=str(uuid4())), "amount": 0.1}
        )
        assert payload.to_command().amount == Decimal("0.1")

    def test_malformed_amount_raises_invalid_amount(self) -> None:
        payload = TransactionCreateV2.model_validate(
            {**self._base(accountId=str(uuid4())), "amount": "12,30"}
        )
        with pytest.raises(InvalidAmountError):
            payload.to_command()

    def test_unknown_type_is_invalid(self) -> None:
        with pytest.raises(ValidationError):
            TransactionCreateV2.model_validate(
                {**self._base(accountId=str(uuid4())), "type": "REFUND"}
            )

    def test_patch_accepts_pocket_id(self) -> None:
        pocket_id = uuid4()
        command = TransactionPatch.model_validate(
            {"pocketId": str(pocket_id), "type": "INCOME"}
        ).to_command()

        assert command.account_id == pocket_id
        assert command.type == TransactionType.INCOME
        assert command.amount is None

    def test_response_uses_signed_amount_and_date_alias(self) -> None:
        txn = Transaction(
            account_id=uuid4(),
            category_id=uuid4(),
            magnitude=Decimal("50000.00"),
            type=TransactionType.TRANSFER_OUT,
            transaction_date=date(2025, 1, 31),
        )

        body = TransactionResponse.from_domain(txn).model_dump(mode="json", by_alias=True)

        assert body["amount"] == "-50000"
        assert body["date"] == "2025-01-31"
        assert body["accountId"] == str(txn.account_id)


class TestTransferPayloads:
    def test_current_shape(self) -> None:
        source, target = uuid4(), uuid4()
        payload = TypeAdapter(TransferCreateRequest).validate_python(
            {
                "fromAccountId": str(source),
                "toAccountId": str(target),
                "amount": 50000,
                "mustBeSameGroup": True,
            }
        )

        assert isinstance(payload, TransferCreateV2)
        command = payload.to_command()
        assert (command.from_account_id, command.to_account_id) == (source, target)
        assert command.amount == Decimal("50000")
        assert command.must_be_same_group

    def test_legacy_pocket_shape(self) -> None:
        source, target = uuid4(), uuid4()
        payload = TypeAdapter(TransferCreateRequest).validate_python(
            {
                "fromPocketId": str(source),
                "toPocketId": str(target),
                "amount": "5",
                "mustBeSameBank": True,
                "description": "",
            }
        )

        assert isinstance(payload, TransferCreateV1)
        command = payload.to_command()
        assert (command.from_account_id, command.to_account_id) == (source, target)
        assert command.must_be_same_group
        assert command.description is None
