"""
DebtLedger - Debts of the active business, cached in memory.

Cache model:
1. ``debts`` holds every debt of the business, most recent first
2. ``snapshot_debts`` maps a daily cash snapshot id to its debts; filled
   lazily, kept until cleared explicitly
3. ``last_loaded_at`` stamps the last full load; ``needs_refresh`` only
   reports staleness, the ledger never reloads by itself

Actions check their preconditions against the cache before any write and
report failures through the notifier instead of raising.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from app.core.config import settings
from app.models.base import AMOUNT_TOLERANCE, as_utc, utcnow
from app.models.debt import (
    CancelDebtPatch,
    CloseDebtPatch,
    Debt,
    DebtCreate,
    DebtPayment,
    DebtPaymentCreate,
    DebtSummary,
    DebtType,
    OriginType,
    PaymentDebtPatch,
)
from app.models.purchase_invoice import PurchaseInvoice
from app.models.user import UserResponse
from app.repositories.base import ErrorCode
from app.repositories.debt_repo import DebtPaymentRepository, DebtRepository
from app.stores.base import ActionResult, FailureReason
from app.stores.notifications import Notifier

logger = logging.getLogger(__name__)

MSG_LOAD_ERROR = "Error al cargar las deudas"
MSG_LOAD_PAYMENTS_ERROR = "Error al cargar los pagos de deuda"
MSG_CREATED = "Deuda creada exitosamente"
MSG_CREATE_ERROR = "Error al crear la deuda"
MSG_NOT_FOUND = "Deuda no encontrada"
MSG_CANCEL_INACTIVE = "Solo se pueden cancelar deudas activas"
MSG_CANCELLED = "Deuda cancelada exitosamente"
MSG_CANCEL_ERROR = "Error al cancelar la deuda"
MSG_CLOSE_INACTIVE = "Solo se pueden cerrar deudas activas"
MSG_CLOSED = "Deuda cerrada exitosamente"
MSG_CLOSE_ERROR = "Error al cerrar la deuda"
MSG_PAYMENT_INACTIVE = "Solo se pueden registrar pagos en deudas activas"
MSG_PAYMENT_EXCEEDS = "El monto no puede ser mayor al saldo pendiente"
MSG_PAYMENT_SNAPSHOT = "Solo los pagos de clientes pueden asociarse a una caja diaria"
MSG_PAYMENT_RECORDED = "Pago registrado exitosamente"
MSG_DEBT_SETTLED = "Deuda pagada completamente"
MSG_PAYMENT_ERROR = "Error al registrar el pago"

INVOICE_DEBT_DESCRIPTION = "Factura de compra #{number} - Pago parcial"


class DebtLedger:
    """Debt store for one business session."""

    def __init__(
        self,
        debts: DebtRepository,
        payments: DebtPaymentRepository,
        user: UserResponse,
        notifier: Notifier,
        cache_ttl_seconds: int = settings.DEBT_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = debts
        self.payment_repo = payments
        self.user = user
        self.notifier = notifier
        self.cache_ttl = timedelta(seconds=cache_ttl_seconds)
        self.clock = clock

        self.debts: List[Debt] = []
        self.snapshot_debts: Dict[str, List[Debt]] = {}
        self.payments: Dict[str, List[DebtPayment]] = {}
        self.last_loaded_at: Optional[datetime] = None

    # ===== QUERIES =====

    @property
    def active_debts(self) -> List[Debt]:
        return [d for d in self.debts if d.is_active()]

    @property
    def customer_debts(self) -> List[Debt]:
        return [d for d in self.debts if d.debt_type == DebtType.CUSTOMER]

    @property
    def supplier_debts(self) -> List[Debt]:
        return [d for d in self.debts if d.debt_type == DebtType.SUPPLIER]

    @property
    def active_customer_debts(self) -> List[Debt]:
        return [d for d in self.customer_debts if d.is_active()]

    @property
    def active_supplier_debts(self) -> List[Debt]:
        return [d for d in self.supplier_debts if d.is_active()]

    @property
    def total_customer_debt(self) -> float:
        return sum(d.remaining_amount for d in self.active_customer_debts)

    @property
    def total_supplier_debt(self) -> float:
        return sum(d.remaining_amount for d in self.active_supplier_debts)

    def debts_by_counterparty(self, entity_id: str, debt_type: DebtType) -> List[Debt]:
        debt_type = DebtType(debt_type)
        return [
            d for d in self.active_debts
            if d.counterparty_id == entity_id and d.debt_type == debt_type
        ]

    def debts_by_origin(self, origin_id: str, origin_type: OriginType) -> List[Debt]:
        origin_type = OriginType(origin_type).value
        return [
            d for d in self.debts
            if d.origin_id == origin_id and d.origin_type == origin_type
        ]

    def get_debt(self, debt_id: str) -> Optional[Debt]:
        return next((d for d in self.debts if d.id == debt_id), None)

    def get_payments(self, debt_id: str) -> List[DebtPayment]:
        return self.payments.get(debt_id, [])

    def summary(self, now: Optional[datetime] = None) -> DebtSummary:
        now = now or self.clock()
        active = self.active_debts

        # Linear scan: on equal timestamps the first debt in list order wins
        oldest = None
        for debt in active:
            if oldest is None or as_utc(debt.created_at) < as_utc(oldest.created_at):
                oldest = debt

        overdue = sum(1 for d in active if d.due_date and as_utc(d.due_date) < now)

        return DebtSummary(
            total_debts=len(active),
            customer_debts=len(self.active_customer_debts),
            supplier_debts=len(self.active_supplier_debts),
            total_customer_amount=self.total_customer_debt,
            total_supplier_amount=self.total_supplier_debt,
            oldest_debt=oldest,
            overdue_debts=overdue,
        )

    @property
    def needs_refresh(self) -> bool:
        if self.last_loaded_at is None:
            return True
        return self.clock() - self.last_loaded_at > self.cache_ttl

    # ===== CACHE =====

    def _replace(self, debt: Debt) -> None:
        """Swap the cached copies of ``debt`` for the confirmed document."""
        for cached in [self.debts, *self.snapshot_debts.values()]:
            for i, existing in enumerate(cached):
                if existing.id == debt.id:
                    cached[i] = debt

    def clear_snapshot_cache(self, snapshot_id: str) -> None:
        self.snapshot_debts.pop(snapshot_id, None)

    def clear_cache(self) -> None:
        self.debts = []
        self.snapshot_debts = {}
        self.payments = {}
        self.last_loaded_at = None

    # ===== LOADING =====

    async def load_debts(self) -> ActionResult:
        try:
            result = await self.repo.find_all()
            if not result.success:
                logger.error("Error loading debts: %s", result.error)
                self.notifier.error(MSG_LOAD_ERROR)
                return ActionResult.from_schema(result, MSG_LOAD_ERROR)

            self.debts = result.data
            self.last_loaded_at = self.clock()
            return ActionResult.ok(self.debts)
        except Exception:
            logger.exception("Unexpected error loading debts")
            self.notifier.error(MSG_LOAD_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_LOAD_ERROR)

    async def load_debts_for_snapshot(self, snapshot_id: str) -> ActionResult:
        """Debts linked to one daily cash snapshot, read once per snapshot id."""
        cached = self.snapshot_debts.get(snapshot_id)
        if cached is not None:
            return ActionResult.ok(cached, from_cache=True)

        try:
            result = await self.repo.find_by_snapshot(snapshot_id)
            if not result.success:
                logger.error("Error loading debts for snapshot %s: %s", snapshot_id, result.error)
                self.notifier.error(MSG_LOAD_ERROR)
                return ActionResult.from_schema(result, MSG_LOAD_ERROR)

            self.snapshot_debts[snapshot_id] = result.data
            return ActionResult.ok(result.data)
        except Exception:
            logger.exception("Unexpected error loading debts for snapshot %s", snapshot_id)
            self.notifier.error(MSG_LOAD_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_LOAD_ERROR)

    async def load_payments(self, debt_id: Optional[str] = None) -> ActionResult:
        try:
            result = await self.payment_repo.find_by_debt(debt_id)
            if not result.success:
                logger.error("Error loading debt payments: %s", result.error)
                self.notifier.error(MSG_LOAD_PAYMENTS_ERROR)
                return ActionResult.from_schema(result, MSG_LOAD_PAYMENTS_ERROR)

            if debt_id:
                self.payments[debt_id] = result.data
            else:
                grouped: Dict[str, List[DebtPayment]] = {}
                for payment in result.data:
                    grouped.setdefault(payment.debt_id, []).append(payment)
                self.payments = grouped
            return ActionResult.ok(result.data)
        except Exception:
            logger.exception("Unexpected error loading debt payments")
            self.notifier.error(MSG_LOAD_PAYMENTS_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_LOAD_PAYMENTS_ERROR)

    # ===== MUTATIONS =====

    async def create_debt(self, data: DebtCreate) -> ActionResult:
        try:
            doc = data.to_document(self.user.id, self.user.display_name)
            result = await self.repo.create(doc)
            if not result.success:
                logger.error("Error creating debt: %s", result.error)
                self.notifier.error(MSG_CREATE_ERROR)
                return ActionResult.from_schema(result, MSG_CREATE_ERROR)

            debt: Debt = result.data
            self.debts.insert(0, debt)
            # Only snapshots already read get the new debt; others load it later
            linked = self.snapshot_debts.get(debt.daily_cash_snapshot_id or "")
            if linked is not None:
                linked.insert(0, debt)

            logger.info("Debt %s created for business %s", debt.id, debt.business_id)
            self.notifier.success(MSG_CREATED)
            return ActionResult.ok(debt)
        except Exception:
            logger.exception("Unexpected error creating debt")
            self.notifier.error(MSG_CREATE_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_CREATE_ERROR)

    async def create_debt_from_purchase_invoice(
        self,
        invoice: PurchaseInvoice,
        remaining_amount: float,
        due_date: Optional[datetime] = None,
    ) -> ActionResult:
        """Open a supplier debt for the unpaid part of a purchase invoice."""
        data = DebtCreate(
            type=DebtType.SUPPLIER,
            entity_id=invoice.supplier_id,
            entity_name=invoice.supplier_name,
            original_amount=remaining_amount,
            origin_type=OriginType.PURCHASE_INVOICE,
            origin_id=invoice.id,
            origin_description=INVOICE_DEBT_DESCRIPTION.format(number=invoice.invoice_number),
            due_date=due_date,
        )
        return await self.create_debt(data)

    def _require_active(self, debt_id: str, inactive_message: str) -> ActionResult:
        debt = self.get_debt(debt_id)
        if debt is None:
            self.notifier.error(MSG_NOT_FOUND)
            return ActionResult.fail(FailureReason.NOT_FOUND, MSG_NOT_FOUND)
        if not debt.is_active():
            self.notifier.error(inactive_message)
            return ActionResult.fail(FailureReason.INVALID_STATE, inactive_message)
        return ActionResult.ok(debt)

    async def _apply_terminal(
        self,
        debt_id: str,
        build_patch: Callable[[Debt], object],
        inactive_message: str,
        success_message: str,
        error_message: str,
    ) -> ActionResult:
        checked = self._require_active(debt_id, inactive_message)
        if not checked.success:
            return checked

        try:
            patch = build_patch(checked.data)
        except ValidationError as e:
            logger.warning("Rejected patch for debt %s: %s", debt_id, e)
            self.notifier.error(error_message)
            return ActionResult.fail(FailureReason.VALIDATION, error_message)

        try:
            result = await self.repo.update(debt_id, patch)
            if not result.success:
                if result.code == ErrorCode.CONFLICT:
                    # Another action settled the debt first
                    self.notifier.error(inactive_message)
                    return ActionResult.fail(FailureReason.INVALID_STATE, inactive_message)
                logger.error("Error updating debt %s: %s", debt_id, result.error)
                self.notifier.error(error_message)
                return ActionResult.from_schema(result, error_message)

            self._replace(result.data)
            self.notifier.success(success_message)
            return ActionResult.ok(result.data)
        except Exception:
            logger.exception("Unexpected error updating debt %s", debt_id)
            self.notifier.error(error_message)
            return ActionResult.fail(FailureReason.UNEXPECTED, error_message)

    async def cancel_debt(self, debt_id: str, reason: str) -> ActionResult:
        return await self._apply_terminal(
            debt_id,
            lambda debt: CancelDebtPatch(reason=reason, cancelled_by=self.user.id),
            MSG_CANCEL_INACTIVE,
            MSG_CANCELLED,
            MSG_CANCEL_ERROR,
        )

    async def close_debt(self, debt_id: str, reason: str) -> ActionResult:
        """Settle a debt in full by hand, appending the reason to its notes."""
        return await self._apply_terminal(
            debt_id,
            lambda debt: CloseDebtPatch(
                reason=reason,
                original_amount=debt.original_amount,
                prior_notes=debt.notes,
            ),
            MSG_CLOSE_INACTIVE,
            MSG_CLOSED,
            MSG_CLOSE_ERROR,
        )

    async def record_payment(self, debt_id: str, data: DebtPaymentCreate) -> ActionResult:
        """
        Pay part or all of an active debt.

        The payment record is written first. The debt update is then
        conditioned on the paid amount read from the cache; when it misses,
        the record is deleted again. The cache changes only once both
        writes have landed.
        """
        checked = self._require_active(debt_id, MSG_PAYMENT_INACTIVE)
        if not checked.success:
            return checked
        debt: Debt = checked.data

        if data.amount > debt.remaining_amount + AMOUNT_TOLERANCE:
            self.notifier.error(MSG_PAYMENT_EXCEEDS)
            return ActionResult.fail(FailureReason.VALIDATION, MSG_PAYMENT_EXCEEDS)
        if data.snapshot is not None and debt.debt_type != DebtType.CUSTOMER:
            self.notifier.error(MSG_PAYMENT_SNAPSHOT)
            return ActionResult.fail(FailureReason.VALIDATION, MSG_PAYMENT_SNAPSHOT)

        patch = PaymentDebtPatch(
            original_amount=debt.original_amount,
            previous_paid_amount=debt.paid_amount,
            paid_amount=min(debt.original_amount, round(debt.paid_amount + data.amount, 2)),
        )
        payment_doc = {
            "debt_id": debt_id,
            "amount": data.amount,
            "payment_method": data.payment_method,
            "is_reported": data.is_reported,
            "notes": data.notes,
            "created_by": self.user.id,
            "created_by_name": self.user.display_name,
        }
        if data.snapshot is not None:
            payment_doc.update(data.snapshot.model_dump())

        try:
            payment_result = await self.payment_repo.create(payment_doc)
            if not payment_result.success:
                logger.error("Error recording payment for debt %s: %s", debt_id, payment_result.error)
                self.notifier.error(MSG_PAYMENT_ERROR)
                return ActionResult.from_schema(payment_result, MSG_PAYMENT_ERROR)
            payment: DebtPayment = payment_result.data

            result = await self.repo.update(debt_id, patch)
            if not result.success:
                logger.error("Error applying payment to debt %s: %s", debt_id, result.error)
                await self._discard_payment(payment)
                self.notifier.error(MSG_PAYMENT_ERROR)
                return ActionResult.from_schema(result, MSG_PAYMENT_ERROR)

            self._replace(result.data)
            if debt_id in self.payments:
                self.payments[debt_id].insert(0, payment)

            self.notifier.success(MSG_DEBT_SETTLED if patch.settles_debt else MSG_PAYMENT_RECORDED)
            return ActionResult.ok(payment)
        except Exception:
            logger.exception("Unexpected error recording payment for debt %s", debt_id)
            self.notifier.error(MSG_PAYMENT_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_PAYMENT_ERROR)

    async def _discard_payment(self, payment: DebtPayment) -> None:
        removed = await self.payment_repo.delete(payment.id)
        if not removed.success:
            logger.error(
                "Payment %s for debt %s left without a debt update: %s",
                payment.id, payment.debt_id, removed.error,
            )
