"""Run orchestrator - drives a shopping run through its phases.

initializing -> cart -> substitution -> slots -> finalizing -> review

The run stops at ``review``. Checkout is always left to the shopper.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from cartpilot_sdk.logging import get_logger
from cartpilot_sdk.utils.datetime import elapsed_ms, utc_now
from core.application.dtos import (
    SUBSTITUTION_SYSTEM_PROMPT,
    AdvisoryMessage,
    AdvisoryOptions,
    AgentAction,
    CartScanData,
    CartScanPayload,
    ErrorCode,
    LoginCheckData,
    OrderDetailData,
    OrderDetailPayload,
    OrderHistoryData,
    OrderHistoryPayload,
    ReorderData,
    ReorderPayload,
    SearchProductsData,
    SearchProductsPayload,
    SlotsExtractData,
)
from core.application.interfaces import (
    IAdvisoryService,
    IAgentTransport,
    IStoragePort,
    ITargetSessionPort,
)
from core.application.serialization import dump_entity, load_entity
from core.domain.entities import (
    CartItem,
    OrderDetail,
    OrderItem,
    OrderSummary,
    ReviewPack,
    ReviewStats,
    SlotPreferences,
    SubstitutionProposal,
)
from core.domain.enums import (
    CartStep,
    ReorderMode,
    RunPhase,
    RunStatus,
    SlotsStep,
    SubstitutionStep,
)
from core.domain.services import (
    RankedSubstitute,
    calculate_cart_diff,
    generate_diff_summary,
    rank_slots,
    rank_substitutes,
)
from core.settings.modules.orchestrator_settings import OrchestratorSettings
from core.settings.modules.site_settings import SiteSettings

from .actions import (
    ApproveCart,
    CancelRun,
    ErrorOccurred,
    PauseRun,
    PhaseComplete,
    ProgressUpdate,
    RecoveryComplete,
    ResumeRun,
    StartRun,
    StepUpdate,
)
from .bus import StateListener
from .cancellation import CancellationToken
from .errors import (
    AgentResponseError,
    ContextLostError,
    InvalidRunCommandError,
    MalformedResponseError,
    NotLoggedInError,
    PhaseTimeoutError,
    RunCancelledError,
    RunFailure,
    TargetNotFoundError,
    UnknownPhaseError,
    WrongPageError,
)
from .messaging import AgentClient
from .models import RecoveryDecision, RecoveryOutcome, RunContext
from .state import (
    LOGIN_STATE_KEY,
    REVIEW_PACK_KEY,
    USER_PREFERENCES_KEY,
    RunState,
)
from .state_machine import StateMachine
from .transitions import is_logged_in, pack_ready
from .workflow import PhaseHandler, RetryPolicy


def build_search_query(item: CartItem) -> str:
    """``"<brand> <name without brand>"``, or just the name when there is no brand."""
    if not item.brand:
        return item.name
    rest = " ".join(item.name.replace(item.brand, "").split())
    return f"{item.brand} {rest}".strip()


class RunOrchestrator:
    """Runs the shopping workflow on top of the state machine.

    The orchestrator is the only component that dispatches actions. Phase
    failures are caught at the loop boundary, classified into a RunError,
    and recorded with ``ErrorOccurred``; they never escape public methods.
    """

    def __init__(
        self,
        state_machine: StateMachine,
        storage: IStoragePort,
        agent_transport: IAgentTransport,
        session: ITargetSessionPort,
        advisory: IAdvisoryService | None = None,
        settings: OrchestratorSettings | None = None,
        site: SiteSettings | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            state_machine: Owner of the run state
            storage: Key/value store for review pack, login state and preferences
            agent_transport: Transport to the page agent
            session: Target page session
            advisory: Optional LLM advisory service
            settings: Orchestrator settings (loaded from the environment if None)
            site: Site settings (loaded from the environment if None)

        Raises:
            ValueError: If the state machine and the settings disagree on the
                retry ceiling
        """
        self._state_machine = state_machine
        self._storage = storage
        self._session = session
        self._advisory = advisory
        self._settings = settings or OrchestratorSettings()
        self._site = site or SiteSettings()
        if state_machine.max_error_count != self._settings.max_retries:
            raise ValueError(
                f"State machine allows {state_machine.max_error_count} errors but "
                f"max_retries is {self._settings.max_retries}"
            )
        self._agent = AgentClient(agent_transport, self._settings.operation_timeout_seconds)
        self._retry_policy = RetryPolicy(max_attempts=self._settings.max_retries)

        self._context: RunContext | None = None
        self._token: CancellationToken | None = None
        self._review_pack: ReviewPack | None = None
        self._loop_lock = asyncio.Lock()
        self._logger = get_logger("orchestration.orchestrator")

        self._phase_handlers: dict[RunPhase, PhaseHandler] = {
            RunPhase.INITIALIZING: self._run_initializing,
            RunPhase.CART: self._run_cart,
            RunPhase.SUBSTITUTION: self._run_substitution,
            RunPhase.SLOTS: self._run_slots,
            RunPhase.FINALIZING: self._run_finalizing,
        }

    # =========================================================================
    # Presentation surface
    # =========================================================================

    def get_state(self) -> RunState:
        return self._state_machine.get_state()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._state_machine.subscribe(listener)

    def get_context(self) -> RunContext | None:
        return self._context

    # =========================================================================
    # Commands
    # =========================================================================

    async def start_run(self, target_id: str, order_id: str | None = None) -> RunState:
        """Start a run and drive it until it leaves ``running``.

        Args:
            target_id: Page session to drive
            order_id: Replay only this order instead of the most recent ones

        Returns:
            State once the loop stopped (review, paused or idle)

        Raises:
            InvalidRunCommandError: If a run is already in progress
        """
        state = self._state_machine.get_state()
        if state.status != RunStatus.IDLE:
            raise InvalidRunCommandError(
                f"Cannot start a run while status is '{state.status.value}'"
            )

        self._context = RunContext(target_id=target_id, order_id=order_id)
        self._review_pack = None
        token = self._new_token()

        state = self._state_machine.dispatch(StartRun(target_id=target_id, order_id=order_id))
        self._logger.info(f"Run {state.run_id} started on target {target_id}")

        await self._drive(token)
        return self._state_machine.get_state()

    def pause_run(self) -> RunState:
        """Pause a running run; the in-flight phase is aborted.

        Raises:
            InvalidRunCommandError: If the run is not running
        """
        state = self._state_machine.get_state()
        if state.status != RunStatus.RUNNING:
            raise InvalidRunCommandError(
                f"Cannot pause while status is '{state.status.value}'"
            )

        state = self._state_machine.dispatch(PauseRun())
        self._cancel_token("paused")
        self._logger.info(f"Run {state.run_id} paused in phase {state.phase.value}")
        return state

    async def resume_run(self) -> RunState:
        """Resume a paused run and drive it until it leaves ``running``.

        Raises:
            InvalidRunCommandError: If the run is not paused
        """
        state = self._state_machine.get_state()
        if state.status != RunStatus.PAUSED:
            raise InvalidRunCommandError(
                f"Cannot resume while status is '{state.status.value}'"
            )

        resumed = self._state_machine.dispatch(ResumeRun())
        if resumed is state:
            error = state.error
            self._logger.warning(
                f"Run {state.run_id} cannot be resumed "
                f"(error={error.code if error else None}, errors={state.error_count})"
            )
            return state

        token = self._new_token()
        self._logger.info(f"Run {resumed.run_id} resumed in phase {resumed.phase.value}")
        await self._drive(token)
        return self._state_machine.get_state()

    def cancel_run(self) -> RunState:
        """Abandon the current run and return to idle."""
        state = self._state_machine.get_state()
        if state.status == RunStatus.IDLE:
            self._logger.info("Cancel ignored: no run in progress")
            return state

        self._cancel_token("cancelled")
        self._context = None
        self._review_pack = None
        state = self._state_machine.dispatch(CancelRun())
        self._logger.info("Run cancelled")
        return state

    def approve_review(self) -> RunState:
        """Record the shopper's approval of the review pack.

        Nothing is submitted to the shop; the shopper checks out manually.

        Raises:
            InvalidRunCommandError: If there is no review pack awaiting approval
        """
        state = self._state_machine.get_state()
        if state.status != RunStatus.REVIEW:
            raise InvalidRunCommandError(
                f"Cannot approve while status is '{state.status.value}'"
            )

        self._context = None
        state = self._state_machine.dispatch(ApproveCart())
        self._logger.info("Review approved; checkout is up to the shopper")
        return state

    async def get_review_pack(self) -> ReviewPack | None:
        """Return the review pack while the run awaits review."""
        state = self._state_machine.get_state()
        if not pack_ready(state):
            return None

        if self._review_pack is not None and self._review_pack.run_id == state.run_id:
            return self._review_pack

        try:
            stored = await self._storage.get(REVIEW_PACK_KEY)
        except Exception as exc:
            self._logger.error(f"Failed to load review pack: {exc}", exc_info=True)
            return None

        raw = stored.get(REVIEW_PACK_KEY)
        if raw is None:
            return None
        try:
            pack = load_entity(ReviewPack, raw)
        except ValidationError as exc:
            self._logger.error(f"Stored review pack is corrupt: {exc}")
            return None

        if pack.run_id != state.run_id:
            self._logger.warning(f"Stored review pack belongs to run {pack.run_id}")
            return None
        self._review_pack = pack
        return pack

    async def recover_interrupted_run(self) -> RecoveryDecision:
        """Decide what to do with a run left over from a previous process.

        An interrupted run cannot be continued because its context was lost;
        it is discarded. A run awaiting review keeps its persisted pack.
        """
        state = self._state_machine.get_state()

        if state.recovery_needed or (state.is_active and self._context is None):
            run_id = state.run_id
            if state.recovery_needed:
                self._state_machine.dispatch(RecoveryComplete())
            self._cancel_token("discarded")
            self._state_machine.dispatch(CancelRun())
            self._logger.warning(f"Discarded interrupted run {run_id} (context lost)")
            return RecoveryDecision(
                outcome=RecoveryOutcome.DISCARDED,
                run_id=run_id,
                reason=f"Run was interrupted in phase {state.phase.value if state.phase else '-'}",
            )

        if state.status == RunStatus.REVIEW and await self.get_review_pack() is not None:
            return RecoveryDecision(
                outcome=RecoveryOutcome.REVIEW_READY,
                run_id=state.run_id,
                reason="Review pack awaiting approval",
            )

        return RecoveryDecision(
            outcome=RecoveryOutcome.NOTHING_TO_RECOVER,
            run_id=state.run_id,
            reason=f"Status is '{state.status.value}'",
        )

    # =========================================================================
    # Run loop
    # =========================================================================

    def _new_token(self) -> CancellationToken:
        self._cancel_token("superseded")
        self._token = CancellationToken()
        return self._token

    def _cancel_token(self, reason: str) -> None:
        if self._token is not None:
            self._token.cancel(reason)

    async def _drive(self, token: CancellationToken) -> None:
        try:
            async with self._loop_lock:
                await self._run_loop(token)
        except Exception as exc:
            self._handle_fatal_error(exc)

    async def _run_loop(self, token: CancellationToken) -> None:
        while True:
            if token.is_cancelled:
                return

            state = self._state_machine.get_state()
            if state.status != RunStatus.RUNNING:
                return

            phase = state.phase
            self._logger.info(f"Executing phase {phase.value if phase else None}")

            try:
                await token.run(
                    self._execute_phase(phase, token),
                    timeout=self._settings.phase_timeout_seconds,
                )
            except RunCancelledError:
                return
            except asyncio.TimeoutError:
                if token.is_cancelled:
                    return
                self._handle_phase_error(
                    PhaseTimeoutError(
                        f"Phase {phase.value if phase else None} exceeded "
                        f"{self._settings.phase_timeout_seconds}s"
                    ),
                    phase,
                )
                continue
            except Exception as exc:
                if token.is_cancelled:
                    return
                self._handle_phase_error(exc, phase)
                continue

            if token.is_cancelled:
                return
            self._state_machine.dispatch(PhaseComplete(phase=phase))

    async def _execute_phase(self, phase: RunPhase | None, token: CancellationToken) -> None:
        handler = self._phase_handlers.get(phase)
        if handler is None:
            raise UnknownPhaseError(f"No handler for phase {phase!r}")
        if self._context is None:
            raise ContextLostError("Run context lost; the run must be restarted")
        await handler(self._context, token)

    def _handle_phase_error(self, exc: Exception, phase: RunPhase | None) -> None:
        state = self._state_machine.get_state()
        error = self._retry_policy.build_error(exc, phase=phase, error_count=state.error_count)
        self._logger.warning(
            f"Phase {phase.value if phase else None} failed: {error.code} {error.message} "
            f"(attempt {error.retry_count}, recoverable={error.recoverable})"
        )
        self._state_machine.dispatch(ErrorOccurred(error=error))

    def _handle_fatal_error(self, exc: Exception) -> None:
        self._logger.error(f"Run loop crashed: {exc}", exc_info=True)
        state = self._state_machine.get_state()
        error = self._retry_policy.build_error(
            RunFailure(f"Unexpected failure: {exc}", code=ErrorCode.UNKNOWN),
            phase=state.phase,
            error_count=state.error_count,
        )
        self._state_machine.dispatch(ErrorOccurred(error=error))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _step(self, step: Any) -> None:
        self._state_machine.dispatch(StepUpdate(step=step))

    def _progress(self, **changes: int) -> None:
        self._state_machine.dispatch(ProgressUpdate(changes=changes))

    async def _navigate(self, ctx: RunContext, url: str, token: CancellationToken) -> None:
        timeout = self._settings.operation_timeout_seconds
        await token.run(self._session.navigate(ctx.target_id, url), timeout=timeout)
        await self._wait_for_load(ctx, token)

    async def _wait_for_load(self, ctx: RunContext, token: CancellationToken) -> None:
        timeout = self._settings.operation_timeout_seconds
        try:
            await token.run(self._session.wait_for_load(ctx.target_id, timeout), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise RunFailure(
                f"Target {ctx.target_id} did not finish loading within {timeout}s",
                code=ErrorCode.PAGE_NOT_READY,
                transient=True,
            ) from exc

    async def _save_quietly(self, key: str, value: Any) -> None:
        try:
            await self._storage.set({key: value})
        except Exception as exc:
            self._logger.error(f"Failed to store {key}: {exc}", exc_info=True)

    # =========================================================================
    # Phase: initializing
    # =========================================================================

    async def _run_initializing(self, ctx: RunContext, token: CancellationToken) -> None:
        timeout = self._settings.operation_timeout_seconds

        target = await token.run(self._session.get(ctx.target_id), timeout=timeout)
        if target is None:
            raise TargetNotFoundError(f"Target {ctx.target_id} not found")
        if not self._site.is_site_url(target.url):
            raise WrongPageError(f"Target is on {target.url}, expected {self._site.expected_host}")

        if target.loading:
            await self._wait_for_load(ctx, token)

        login = await self._agent.call(
            ctx.target_id, AgentAction.LOGIN_CHECK, None, LoginCheckData, token
        )
        login_state = login.to_entity(detected_on_url=target.url)
        ctx.login_state = login_state
        await self._save_quietly(LOGIN_STATE_KEY, dump_entity(login_state))

        if not is_logged_in(login_state):
            raise NotLoggedInError("Shopper is not logged in; log in and start again")

        self._logger.info(f"Logged in as {login_state.user_name or 'unknown user'}")

    # =========================================================================
    # Phase: cart
    # =========================================================================

    async def _run_cart(self, ctx: RunContext, token: CancellationToken) -> None:
        self._step(CartStep.LOADING_ORDERS)
        await self._navigate(ctx, self._site.order_history_url, token)
        history = await self._agent.call(
            ctx.target_id,
            AgentAction.ORDER_EXTRACT_HISTORY,
            OrderHistoryPayload(limit=self._settings.history_limit),
            OrderHistoryData,
            token,
        )
        ctx.order_history = history.to_entities()

        self._step(CartStep.SELECTING_ORDER)
        replay = self._select_orders(ctx)
        ctx.replayed_orders = replay
        ctx.selected_order = replay[-1]
        self._progress(orders_total=len(replay), orders_loaded=0)
        self._logger.info(f"Replaying {len(replay)} order(s): {[o.order_id for o in replay]}")

        self._step(CartStep.REORDERING)
        expected: dict[str, OrderItem] | None = {}
        for index, order in enumerate(replay):
            mode = ReorderMode.REPLACE if index == 0 else ReorderMode.MERGE
            if order.detail_url:
                await self._navigate(ctx, self._site.url_for(order.detail_url), token)

            detail = await self._fetch_order_detail(ctx, order, token)
            if detail is None:
                expected = None
            elif expected is not None:
                _apply_to_expected(expected, detail.items, mode)

            await self._reorder(ctx, order, mode, token)
            self._progress(orders_loaded=index + 1)

        ctx.expected_items = list(expected.values()) if expected is not None else None

        self._step(CartStep.SCANNING_CART)
        await self._navigate(ctx, self._site.cart_url, token)
        scan = await self._agent.call(
            ctx.target_id,
            AgentAction.CART_SCAN,
            CartScanPayload(include_out_of_stock=True),
            CartScanData,
            token,
        )
        items = scan.to_entities()
        ctx.cart_items = items
        ctx.available_items = [item for item in items if not item.is_unavailable]
        ctx.unavailable_items = [item for item in items if item.is_unavailable]

        self._step(CartStep.COMPARING)
        if ctx.expected_items is not None:
            ctx.cart_diff = calculate_cart_diff(ctx.expected_items, items)
            self._logger.info(f"Cart diff: {generate_diff_summary(ctx.cart_diff)}")

        self._progress(
            items_total=len(items),
            unavailable_items=len(ctx.unavailable_items),
        )

    def _select_orders(self, ctx: RunContext) -> list[OrderSummary]:
        """Orders to replay, oldest first."""
        if ctx.order_id:
            selected = [o for o in ctx.order_history if o.order_id == ctx.order_id]
            if not selected:
                raise RunFailure(
                    f"Order {ctx.order_id} is not in the order history",
                    code=ErrorCode.ELEMENT_NOT_FOUND,
                )
        else:
            newest_first = sorted(ctx.order_history, key=lambda o: o.placed_at, reverse=True)
            selected = newest_first[: self._settings.merge_order_count]
            if not selected:
                raise RunFailure("No past orders to rebuild a cart from", code=ErrorCode.ELEMENT_NOT_FOUND)

        return sorted(selected, key=lambda o: o.placed_at)

    async def _fetch_order_detail(
        self, ctx: RunContext, order: OrderSummary, token: CancellationToken
    ) -> OrderDetail | None:
        try:
            data = await self._agent.call(
                ctx.target_id,
                AgentAction.ORDER_EXTRACT_DETAIL,
                OrderDetailPayload(order_id=order.order_id),
                OrderDetailData,
                token,
            )
        except (AgentResponseError, MalformedResponseError) as exc:
            self._logger.warning(f"No detail for order {order.order_id}; cart diff skipped: {exc}")
            return None
        return data.order.to_entity()

    async def _reorder(
        self, ctx: RunContext, order: OrderSummary, mode: ReorderMode, token: CancellationToken
    ) -> None:
        payload = ReorderPayload(order_id=order.order_id, mode=mode)
        result = await self._send_reorder(ctx, payload, token)

        if result is not None and result.expanded and not result.clicked:
            # First click only expanded the order card
            await token.sleep(self._settings.reorder_retry_delay_seconds)
            result = await self._send_reorder(ctx, payload, token)

        if result is None or not result.clicked:
            self._logger.warning(f"Reorder of {order.order_id} ({mode.value}) was not confirmed")
        else:
            self._logger.info(f"Reordered {order.order_id} ({mode.value})")

        await token.sleep(self._settings.reorder_settle_seconds)

    async def _send_reorder(
        self, ctx: RunContext, payload: ReorderPayload, token: CancellationToken
    ) -> ReorderData | None:
        response = await self._agent.request(
            ctx.target_id, AgentAction.ORDER_REORDER, payload, token
        )
        if not response.success:
            return None
        return self._agent.parse(response, ReorderData)

    # =========================================================================
    # Phase: substitution
    # =========================================================================

    async def _run_substitution(self, ctx: RunContext, token: CancellationToken) -> None:
        self._step(SubstitutionStep.IDENTIFYING)
        ctx.substitutions = []
        self._logger.info(f"{len(ctx.unavailable_items)} unavailable item(s) to substitute")

        for index, item in enumerate(ctx.unavailable_items):
            token.raise_if_cancelled()

            self._step(SubstitutionStep.SEARCHING)
            candidates = await self._search_candidates(ctx, item, token)

            self._step(SubstitutionStep.SCORING)
            ranked = rank_substitutes(item, candidates)

            if ranked:
                self._step(SubstitutionStep.PROPOSING)
                best = ranked[0]
                proposal = SubstitutionProposal(
                    original_item=item,
                    substitute=best.product,
                    score=best.score,
                    score_breakdown=best.breakdown,
                    reason=best.reason,
                    rationale=await self._advise(item, best, token),
                )
                ctx.substitutions.append(proposal)
                self._logger.info(
                    f"Proposed {best.product.name} for {item.name} (score={best.score:.2f})"
                )
            else:
                self._logger.info(f"No substitute found for {item.name}")

            self._progress(
                items_processed=index + 1,
                substitutes_proposed=len(ctx.substitutions),
            )

    async def _search_candidates(self, ctx: RunContext, item: CartItem, token: CancellationToken):
        payload = SearchProductsPayload(
            query=build_search_query(item),
            max_results=self._settings.search_max_results,
        )
        response = await self._agent.request(
            ctx.target_id, AgentAction.SEARCH_PRODUCTS, payload, token
        )
        if not response.success:
            return []

        products = self._agent.parse(response, SearchProductsData).to_entities()
        return [
            p for p in products
            if p.is_purchasable and p.product_id != item.product_id
        ]

    async def _advise(
        self, item: CartItem, best: RankedSubstitute, token: CancellationToken
    ) -> str | None:
        if self._advisory is None or not self._advisory.is_available():
            return None

        prompt = (
            f"Unavailable item: {item.name} ({item.brand or 'no brand'}, {item.price:.2f} EUR).\n"
            f"Proposed substitute: {best.product.name} "
            f"({best.product.brand or 'no brand'}, {best.product.price:.2f} EUR).\n"
            "In one or two sentences, say why this is or is not a good replacement."
        )
        try:
            completion = await token.run(
                self._advisory.complete(
                    [AdvisoryMessage(role="user", content=prompt)],
                    AdvisoryOptions(system_prompt=SUBSTITUTION_SYSTEM_PROMPT, max_tokens=200),
                ),
                timeout=self._settings.operation_timeout_seconds,
            )
        except RunCancelledError:
            raise
        except Exception as exc:
            self._logger.warning(f"Advisory unavailable, keeping heuristic only: {exc}")
            return None

        return completion.content.strip() or None

    # =========================================================================
    # Phase: slots
    # =========================================================================

    async def _run_slots(self, ctx: RunContext, token: CancellationToken) -> None:
        self._step(SlotsStep.NAVIGATING)
        await self._navigate(ctx, self._site.delivery_url, token)

        self._step(SlotsStep.EXTRACTING)
        data = await self._agent.call(
            ctx.target_id, AgentAction.SLOTS_EXTRACT, None, SlotsExtractData, token
        )
        ctx.slots = data.to_entities()

        self._step(SlotsStep.SCORING)
        preferences = await self._load_preferences()
        ctx.slot_recommendation = rank_slots(ctx.slots, preferences)
        self._progress(slots_found=len(ctx.slot_recommendation.all_slots))

    async def _load_preferences(self) -> SlotPreferences:
        try:
            stored = await self._storage.get(USER_PREFERENCES_KEY)
        except Exception as exc:
            self._logger.error(f"Failed to read preferences, using defaults: {exc}", exc_info=True)
            return SlotPreferences()

        raw = stored.get(USER_PREFERENCES_KEY)
        if raw is None:
            return SlotPreferences()
        try:
            return load_entity(SlotPreferences, raw)
        except ValidationError as exc:
            self._logger.warning(f"Ignoring invalid stored preferences: {exc}")
            return SlotPreferences()

    # =========================================================================
    # Phase: finalizing
    # =========================================================================

    async def _run_finalizing(self, ctx: RunContext, token: CancellationToken) -> None:
        state = self._state_machine.get_state()
        recommendation = ctx.slot_recommendation

        pack = ReviewPack(
            run_id=state.run_id,
            generated_at=utc_now(),
            original_order=ctx.selected_order,
            cart_items=list(ctx.cart_items),
            cart_diff=ctx.cart_diff,
            diff_summary=(
                generate_diff_summary(ctx.cart_diff)
                if ctx.cart_diff is not None
                else "Cart comparison unavailable"
            ),
            substitutions=list(ctx.substitutions),
            slot_recommendation=recommendation,
            stats=ReviewStats(
                total_items=len(ctx.cart_items),
                unavailable_items=len(ctx.unavailable_items),
                substitutes_proposed=len(ctx.substitutions),
                slots_found=len(recommendation.all_slots) if recommendation else 0,
                execution_time_ms=elapsed_ms(state.started_at or ctx.created_at),
            ),
        )

        await token.run(
            self._storage.set({REVIEW_PACK_KEY: dump_entity(pack)}),
            timeout=self._settings.operation_timeout_seconds,
        )
        self._review_pack = pack
        self._logger.info(
            f"Review pack ready: {pack.stats.total_items} items, "
            f"{pack.stats.substitutes_proposed} substitute(s), {pack.stats.slots_found} slot(s)"
        )


def _apply_to_expected(
    expected: dict[str, OrderItem], items: list[OrderItem], mode: ReorderMode
) -> None:
    """Mirror a reorder onto the expected cart lines."""
    if mode == ReorderMode.REPLACE:
        expected.clear()
    for item in items:
        current = expected.get(item.product_id)
        quantity = item.quantity + (current.quantity if current else 0)
        expected[item.product_id] = OrderItem(
            product_id=item.product_id,
            name=item.name,
            unit_price=item.unit_price,
            quantity=quantity,
            brand=item.brand,
            category=item.category,
        )
