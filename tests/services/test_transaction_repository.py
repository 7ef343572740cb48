"""
Tests for TransactionRepository over the in-memory store.

Verifies:
- Save, amend and delete end to end
- Amendment and deletion append reversals; history is never rewritten
- A transaction is reversed at most once
- save() is all-or-nothing across its whole batch
- Caller objects are never mutated or aliased
- Structured log events
"""

from datetime import datetime, timedelta, timezone

import pytest

from ledger_kernel.domain.values import Posting
from ledger_kernel.exceptions import (
    AccountNotEligibleError,
    DuplicateAmendmentError,
    MissingMemoError,
    StoreError,
    TransactionAlreadyReversedError,
    TransactionNotFoundError,
    UnbalancedTransactionError,
)
from ledger_kernel.services.transaction_repository import TransactionRepository
from ledger_kernel.stores.memory import InMemoryAccountRegistry, InMemoryTransactionStore


@pytest.fixture
def two_account_repo(deterministic_clock):
    """Repository whose account service knows exactly "1" and "2"."""
    store = InMemoryTransactionStore()
    repo = TransactionRepository(
        store, InMemoryAccountRegistry({"1", "2"}), clock=deterministic_clock
    )
    return repo, store


class TestReferenceScenarios:
    """End-to-end behavior with accounts "1" and "2" eligible."""

    def test_save_assigns_identity(self, two_account_repo, tx_factory):
        repo, store = two_account_repo

        [saved] = repo.save(tx_factory())

        assert saved.id == "0"
        assert len(store) == 1

    def test_amend_appends_reversal_and_new_version(self, two_account_repo, tx_factory):
        repo, store = two_account_repo
        [saved] = repo.save(tx_factory())
        original = store.get("0")

        saved.memo = "mm"
        [amended] = repo.save(saved)

        assert len(store) == 3
        reversal = store.get("1")
        assert reversal.debits == [Posting("2", 1)]
        assert reversal.credits == [Posting("1", 1)]
        assert reversal.removes == "0"
        assert reversal.memo == "m"

        new_version = store.get("2")
        assert new_version.memo == "mm"
        assert new_version.debits == [Posting("1", 1)]
        assert new_version.credits == [Posting("2", 1)]
        assert new_version.removes is None
        assert amended.id == "2"

        assert store.get("0") == original

    def test_unbalanced_rejected(self, two_account_repo, tx_factory):
        repo, store = two_account_repo
        with pytest.raises(UnbalancedTransactionError):
            repo.save(tx_factory(debits=(("1", 100),), credits=(("2", 99),)))
        assert len(store) == 0

    def test_unknown_account_rejected(self, two_account_repo, tx_factory):
        repo, store = two_account_repo
        with pytest.raises(AccountNotEligibleError):
            repo.save(tx_factory(debits=(("3", 1),), credits=(("2", 1),)))
        assert len(store) == 0

    def test_delete_unknown_identity(self, two_account_repo):
        repo, store = two_account_repo
        with pytest.raises(TransactionNotFoundError):
            repo.delete("42")
        assert len(store) == 0


class TestSave:
    """save() semantics."""

    def test_requires_at_least_one_transaction(self, repository):
        with pytest.raises(ValueError):
            repository.save()

    def test_results_in_input_order(self, repository, tx_factory):
        results = repository.save(tx_factory(memo="first"), tx_factory(memo="second"))
        assert [r.id for r in results] == ["0", "1"]
        assert [r.memo for r in results] == ["first", "second"]

    def test_as_of_stamped_from_clock(self, repository, tx_factory, deterministic_clock):
        [saved] = repository.save(tx_factory())
        assert saved.as_of == deterministic_clock.now()
        assert repository.get(saved.id).as_of == deterministic_clock.now()

    def test_caller_transaction_not_mutated(self, repository, tx_factory):
        candidate = tx_factory()
        snapshot = candidate.copy()
        repository.save(candidate)
        assert candidate == snapshot
        assert candidate.id is None

    def test_result_not_aliased_with_store(self, repository, memory_store, tx_factory):
        candidate = tx_factory()
        [saved] = repository.save(candidate)
        saved.debits.append(Posting("1", 5))
        candidate.credits.clear()
        stored = memory_store.get(saved.id)
        assert stored.debits == [Posting("1", 1)]
        assert stored.credits == [Posting("2", 1)]

    def test_batch_with_invalid_candidate_appends_nothing(
        self, repository, memory_store, tx_factory
    ):
        with pytest.raises(MissingMemoError):
            repository.save(tx_factory(), tx_factory(memo=""))
        assert len(memory_store) == 0

    def test_amendment_reversal_not_written_when_later_candidate_fails(
        self, repository, memory_store, tx_factory
    ):
        [saved] = repository.save(tx_factory())
        saved.memo = "corrected"

        with pytest.raises(UnbalancedTransactionError):
            repository.save(saved, tx_factory(debits=(("1", 2),)))

        assert len(memory_store) == 1
        assert memory_store.find_reversal(saved.id) is None

    def test_mixed_batch_layout(self, repository, memory_store, tx_factory):
        [first] = repository.save(tx_factory(memo="a"))
        first.memo = "a2"

        results = repository.save(tx_factory(memo="b"), first)

        records = memory_store.snapshot()
        assert [r.memo for r in records] == ["a", "b", "a", "a2"]
        assert records[2].removes == first.id
        assert [r.id for r in results] == ["1", "3"]

    def test_amending_same_identity_twice_in_one_batch(self, repository, memory_store, tx_factory):
        [saved] = repository.save(tx_factory())
        with pytest.raises(DuplicateAmendmentError):
            repository.save(saved, saved.copy())
        assert len(memory_store) == 1

    def test_amend_unknown_identity(self, repository, memory_store, tx_factory):
        candidate = tx_factory()
        candidate.id = "99"
        with pytest.raises(TransactionNotFoundError):
            repository.save(candidate)
        assert len(memory_store) == 0

    def test_amend_already_amended_version_rejected(self, repository, tx_factory):
        [saved] = repository.save(tx_factory())
        stale = saved.copy()
        saved.memo = "v2"
        repository.save(saved)

        stale.memo = "v2 again"
        with pytest.raises(TransactionAlreadyReversedError) as exc_info:
            repository.save(stale)
        assert exc_info.value.transaction_id == saved.id
        assert exc_info.value.reversal_id == "1"

    def test_amendment_user_authors_reversal(self, repository, memory_store, tx_factory):
        [saved] = repository.save(tx_factory(user="alice"))
        saved.user = "bob"
        saved.memo = "fixed"
        repository.save(saved)
        assert memory_store.get("1").user == "bob"

    def test_naive_date_stored_as_utc(self, repository, memory_store, tx_factory):
        candidate = tx_factory(date=datetime(2024, 3, 15, 9, 30))

        [saved] = repository.save(candidate)

        assert saved.date == datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)
        assert saved.date.tzinfo is not None
        assert memory_store.get(saved.id) == saved
        assert candidate.date.tzinfo is None

    def test_aware_date_converted_to_utc(self, repository, tx_factory):
        local = datetime(2024, 3, 15, 11, 30, tzinfo=timezone(timedelta(hours=2)))
        [saved] = repository.save(tx_factory(date=local))
        assert saved.date.utcoffset() == timedelta(0)
        assert saved.date == local

    def test_caller_supplied_removes_ignored(self, repository, memory_store, tx_factory):
        [original] = repository.save(tx_factory())
        forged = tx_factory(memo="not a reversal")
        forged.removes = original.id

        [saved] = repository.save(forged)

        assert saved.removes is None
        assert memory_store.find_reversal(original.id) is None
        assert repository.delete(original.id).removes == original.id

    def test_amending_reversal_record_posts_plain_transaction(
        self, repository, memory_store, tx_factory
    ):
        [original] = repository.save(tx_factory())
        reversal = repository.delete(original.id)
        reversal.memo = "reversal restated"

        [restated] = repository.save(reversal)

        assert restated.removes is None
        assert memory_store.find_reversal(reversal.id) == "2"
        assert memory_store.find_reversal(original.id) == reversal.id

    def test_store_returning_wrong_id_count(self, accounts, tx_factory):
        class ShortStore(InMemoryTransactionStore):
            def append(self, transactions):
                return super().append(transactions)[:-1]

        repo = TransactionRepository(ShortStore(), accounts)
        with pytest.raises(StoreError):
            repo.save(tx_factory(), tx_factory())


class TestGet:
    """get() semantics."""

    def test_unknown_identity_is_none(self, repository):
        assert repository.get("nope") is None

    def test_returns_copy(self, repository, tx_factory):
        [saved] = repository.save(tx_factory())
        fetched = repository.get(saved.id)
        fetched.debits.clear()
        fetched.tags.add("mutated")
        again = repository.get(saved.id)
        assert again.debits == [Posting("1", 1)]
        assert again.tags == set()


class TestDelete:
    """delete() appends a reversal; a second delete is rejected."""

    def test_delete_appends_reversal(self, repository, memory_store, tx_factory):
        [saved] = repository.save(tx_factory(debits=(("1", 7),), credits=(("2", 7),)))

        reversal = repository.delete(saved.id, user="auditor")

        assert reversal.id == "1"
        assert reversal.removes == saved.id
        assert reversal.debits == [Posting("2", 7)]
        assert reversal.credits == [Posting("1", 7)]
        assert reversal.user == "auditor"
        assert len(memory_store) == 2
        assert repository.get(saved.id) == saved

    def test_delete_defaults_to_original_author(self, repository, tx_factory):
        [saved] = repository.save(tx_factory(user="alice"))
        assert repository.delete(saved.id).user == "alice"

    def test_delete_stamps_clock(self, repository, tx_factory, deterministic_clock):
        [saved] = repository.save(tx_factory())
        deterministic_clock.advance(60)
        reversal = repository.delete(saved.id)
        assert reversal.as_of == deterministic_clock.now()

    def test_double_delete_rejected(self, repository, memory_store, tx_factory):
        [saved] = repository.save(tx_factory())
        first = repository.delete(saved.id)

        with pytest.raises(TransactionAlreadyReversedError) as exc_info:
            repository.delete(saved.id)

        assert exc_info.value.reversal_id == first.id
        assert len(memory_store) == 2

    def test_delete_after_amendment_rejected(self, repository, tx_factory):
        [saved] = repository.save(tx_factory())
        saved.memo = "v2"
        [amended] = repository.save(saved)

        with pytest.raises(TransactionAlreadyReversedError):
            repository.delete(saved.id)
        repository.delete(amended.id)

    def test_reversal_record_can_be_reversed_once(self, repository, tx_factory):
        [saved] = repository.save(tx_factory())
        reversal = repository.delete(saved.id)

        restored = repository.delete(reversal.id)

        assert restored.removes == reversal.id
        assert restored.debits == saved.debits
        with pytest.raises(TransactionAlreadyReversedError):
            repository.delete(reversal.id)

    def test_account_state_not_consulted(self, memory_store, tx_factory):
        """Reversals restate postings that were already validated."""
        accounts = InMemoryAccountRegistry({"1", "2"})
        repo = TransactionRepository(memory_store, accounts)
        [saved] = repo.save(tx_factory())
        calls_before = len(accounts.calls)

        repo.delete(saved.id)

        assert len(accounts.calls) == calls_before


class TestRepositoryLogging:
    """Structured log events emitted by the repository."""

    def test_save_events(self, captured_logs, repository, tx_factory):
        repository.save(tx_factory())
        messages = [r["message"] for r in captured_logs()]
        assert "transaction_saved" in messages
        completed = next(r for r in captured_logs() if r["message"] == "save_completed")
        assert completed["records_appended"] == 1
        assert completed["reversals"] == 0

    def test_validation_failure_logged(self, captured_logs, repository, tx_factory):
        with pytest.raises(UnbalancedTransactionError):
            repository.save(tx_factory(debits=(("1", 2),)))
        failed = next(r for r in captured_logs() if r["message"] == "validation_failed")
        assert failed["level"] == "WARNING"
        assert failed["error_code"] == "UNBALANCED_TRANSACTION"
        assert failed["position"] == 0

    def test_delete_binds_context(self, captured_logs, repository, tx_factory):
        [saved] = repository.save(tx_factory())
        repository.delete(saved.id, user="auditor")
        appended = [
            r for r in captured_logs()
            if r["message"] == "reversal_appended" and "reversal_id" in r
        ]
        assert appended[0]["transaction_id"] == saved.id
        assert appended[0]["actor_id"] == "auditor"

    def test_double_delete_logged(self, captured_logs, repository, tx_factory):
        [saved] = repository.save(tx_factory())
        repository.delete(saved.id)
        with pytest.raises(TransactionAlreadyReversedError):
            repository.delete(saved.id)
        assert any(
            r["message"] == "transaction_already_reversed" for r in captured_logs()
        )
