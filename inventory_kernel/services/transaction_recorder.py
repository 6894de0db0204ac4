"""
InventoryTransactionRecorder -- records and undoes inventory transactions.

Responsibility:
    Converts a document's inventory line entries into inventory
    transactions, writes them (optionally overriding the document's previous
    transactions), deletes a document's transactions, records lot-cost rows
    for the cost strategies, and emits lifecycle notifications.

Architecture position:
    Kernel > Services -- imperative shell.  Composes the pure
    ``transform_item_entries_to_inventory``, ``LotNumberSequencer``,
    an ``InventoryEntriesSource`` and the ``EventDispatcher``.

Invariants enforced:
    - Override semantics: with ``override=True`` every document present in
      the batch has ALL of its previous transactions deleted exactly once,
      before any row of the batch is inserted.
    - One ``transactions_created`` notification per successful batch,
      carrying every stored transaction.  None on failure.
    - Lot counter advanced only after a non-empty document was recorded.

Failure modes:
    - Storage errors (IntegrityError, OperationalError) propagate unchanged;
      no retry.  Rows of the batch already flushed are NOT compensated here;
      the caller's transaction boundary decides whether they survive.
    - MalformedItemEntryError from the transformer propagates.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.transformer import transform_item_entries_to_inventory
from inventory_kernel.domain.types import (
    DeletedTransactions,
    InventoryLotCost,
    InventoryTransaction,
    TransactionDirection,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory import (
    InventoryLotCostModel,
    InventoryTransactionModel,
)
from inventory_kernel.services.events import (
    EventDispatcher,
    InventoryEvents,
    TransactionsCreated,
    TransactionsDeleted,
)
from inventory_kernel.services.item_entries import (
    InventoryEntriesSource,
    ItemEntriesService,
)
from inventory_kernel.services.lot_sequencer import LotNumberSequencer

logger = get_logger("services.transaction_recorder")


class InventoryTransactionRecorder:
    """
    Writes inventory transactions on behalf of business documents.

    Contract:
        - ``record_one`` inserts one transaction, optionally deleting the
          document's previous transactions first.
        - ``record_many`` inserts a batch and emits one notification.
        - ``record_from_document_entries`` is the orchestration entry point
          used when a document is created or edited.
        - ``delete_by_document`` removes a document's transactions.
        - ``record_lot_cost`` inserts one lot-cost row.

    Usage:
        recorder = InventoryTransactionRecorder(session, dispatcher)
        recorder.record_from_document_entries(
            tenant_id=1, transaction_id=42, transaction_type="Bill",
            transaction_date=date(2024, 3, 1),
            direction=TransactionDirection.IN,
        )
    """

    def __init__(
        self,
        session: Session,
        event_dispatcher: EventDispatcher | None = None,
        entries_source: InventoryEntriesSource | None = None,
        lot_sequencer: LotNumberSequencer | None = None,
    ):
        self._session = session
        self._events = event_dispatcher or EventDispatcher()
        self._entries = entries_source or ItemEntriesService(session)
        self._lots = lot_sequencer or LotNumberSequencer(session)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_one(
        self,
        tenant_id: int,
        transaction: InventoryTransaction,
        delete_old: bool = False,
    ) -> InventoryTransaction:
        """
        Insert one transaction and return it with its stored id.

        With ``delete_old`` the document's existing transactions are deleted
        first (override of an edited document).
        """
        if delete_old:
            self.delete_by_document(
                tenant_id, transaction.transaction_id, transaction.transaction_type,
            )
        return self._insert(tenant_id, transaction)

    def record_many(
        self,
        tenant_id: int,
        transactions: Sequence[InventoryTransaction],
        override: bool = False,
    ) -> tuple[InventoryTransaction, ...]:
        """
        Insert a batch of transactions and emit ``transactions_created``.

        Rows share no state besides the lot number allocated by the caller,
        so their insertion order carries no meaning.  If any insert fails the
        call fails and no notification is emitted.
        """
        if override:
            documents = dict.fromkeys(tx.document_key for tx in transactions)
            for transaction_id, transaction_type in documents:
                self.delete_by_document(tenant_id, transaction_id, transaction_type)

        stored = tuple(self._insert(tenant_id, tx) for tx in transactions)

        logger.info(
            "inventory_transactions_recorded",
            extra={
                "tenant_id": tenant_id,
                "count": len(stored),
                "override": override,
            },
        )

        self._events.dispatch(
            InventoryEvents.TRANSACTIONS_CREATED,
            TransactionsCreated(tenant_id=tenant_id, inventory_transactions=stored),
        )
        return stored

    def record_from_document_entries(
        self,
        tenant_id: int,
        transaction_id: int,
        transaction_type: str,
        transaction_date: date,
        direction: TransactionDirection,
        override: bool = False,
    ) -> tuple[InventoryTransaction, ...]:
        """
        Record the inventory transactions of a document's inventory entries.

        The lot number is read before the entries are fetched; if recording
        fails that number is simply never used.  A document without
        inventory entries is a no-op: nothing is recorded and the counter
        does not move.
        """
        lot_number = self._lots.peek_next(tenant_id)

        entries = self._entries.get_inventory_entries(
            tenant_id, transaction_type, transaction_id,
        )
        if not entries:
            logger.debug(
                "no_inventory_entries",
                extra={
                    "tenant_id": tenant_id,
                    "transaction_id": transaction_id,
                    "transaction_type": transaction_type,
                },
            )
            return ()

        transactions = transform_item_entries_to_inventory(
            entries, direction, transaction_date, lot_number,
        )
        stored = self.record_many(tenant_id, transactions, override)

        self._lots.advance_past(tenant_id, lot_number)
        return stored

    def record_lot_cost(
        self,
        tenant_id: int,
        lot_cost: InventoryLotCost,
    ) -> InventoryLotCost:
        """Insert one lot-cost row and return it with its stored id."""
        model = InventoryLotCostModel.from_dto(lot_cost, tenant_id)
        self._session.add(model)
        self._session.flush()
        return model.to_dto()

    # -------------------------------------------------------------------------
    # Undo
    # -------------------------------------------------------------------------

    def find_by_document(
        self,
        tenant_id: int,
        transaction_id: int,
        transaction_type: str,
    ) -> list[InventoryTransaction]:
        """Return the document's stored transactions."""
        return [
            model.to_dto()
            for model in self._select_document(tenant_id, transaction_id, transaction_type)
        ]

    def delete_by_document(
        self,
        tenant_id: int,
        transaction_id: int,
        transaction_type: str,
    ) -> DeletedTransactions:
        """
        Delete every transaction of a document and emit ``transactions_deleted``.

        A document without transactions is not an error: the result is
        empty and the notification is still emitted with an empty tuple.
        """
        models = self._select_document(tenant_id, transaction_id, transaction_type)
        deleted = tuple(model.to_dto() for model in models)

        for model in models:
            self._session.delete(model)
        self._session.flush()

        logger.info(
            "inventory_transactions_deleted",
            extra={
                "tenant_id": tenant_id,
                "transaction_id": transaction_id,
                "transaction_type": transaction_type,
                "count": len(deleted),
            },
        )

        self._events.dispatch(
            InventoryEvents.TRANSACTIONS_DELETED,
            TransactionsDeleted(
                tenant_id=tenant_id,
                transaction_id=transaction_id,
                transaction_type=transaction_type,
                old_inventory_transactions=deleted,
            ),
        )
        return DeletedTransactions(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            deleted=deleted,
        )

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _insert(self, tenant_id: int, transaction: InventoryTransaction) -> InventoryTransaction:
        model = InventoryTransactionModel.from_dto(transaction, tenant_id)
        self._session.add(model)
        self._session.flush()
        return model.to_dto()

    def _select_document(
        self,
        tenant_id: int,
        transaction_id: int,
        transaction_type: str,
    ) -> list[InventoryTransactionModel]:
        return list(
            self._session.execute(
                select(InventoryTransactionModel).where(
                    InventoryTransactionModel.tenant_id == tenant_id,
                    InventoryTransactionModel.transaction_id == transaction_id,
                    InventoryTransactionModel.transaction_type == transaction_type,
                )
            ).scalars().all()
        )
