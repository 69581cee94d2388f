"""Transform controller: staging, credit-gated apply, and save."""

import dataclasses
import threading
from collections.abc import Callable
from typing import Any

from imagemill.backends.base import CreditLedger, PersistenceAdapter, TransformURLBuilder
from imagemill.backends.factory import get_url_builder
from imagemill.config import Config
from imagemill.constants import FIELD_PARAMETERS
from imagemill.exceptions import (
    CommitInProgressError,
    ConfigError,
    ControllerClosedError,
    NoStagedDirectiveError,
    NothingToSaveError,
    TransformError,
)
from imagemill.logging_config import get_logger
from imagemill.models import (
    CommitResult,
    ImageState,
    TransformationType,
    TransformConfig,
    TransformDescriptor,
    TransformState,
)
from imagemill.transforms.debounce import ChangeDebouncer, TimerFactory
from imagemill.transforms.merge import copy_config, merge_directive, stage_parameter
from imagemill.transforms.sizing import resolve_output_size

logger = get_logger(__name__)

StateListener = Callable[[TransformState, TransformState], None]


class TransformController:
    """Owns the edit session for one uploaded asset.

    Holds the image state, the staged directive and the accumulated config,
    and drives the state machine::

        idle -> staged -> committing -> committed -> idle
                   \\          |
                    +---- error <-+

    Field edits are debounced before they are staged; aspect-ratio
    selections and uploads stage immediately. `apply()` merges the staged
    directive into the accumulated config and charges the credit fee as
    one unit: on any ledger failure neither changes. `save()` freezes the
    accumulated config into a TransformDescriptor for the persistence
    adapter.

    The controller never branches on transformation type: any type that
    produces `{tag: params}` directives works unchanged.
    """

    def __init__(
        self,
        transformation_type: str | TransformationType,
        account_id: str,
        ledger: CreditLedger,
        store: PersistenceAdapter | None = None,
        url_builder: TransformURLBuilder | None = None,
        config: Config | None = None,
        image: ImageState | None = None,
        initial_config: TransformConfig | None = None,
        record_id: str | None = None,
        timer_factory: TimerFactory = threading.Timer,
    ):
        """Initialize the controller.

        Args:
            transformation_type: Type tag (looked up in `config`) or a TransformationType
            account_id: Account charged on apply
            ledger: Credit ledger used for the apply fee
            store: Persistence adapter used by save()
            url_builder: Builds the derived-asset locator (defaults to the
                delivery builder configured in `config.settings`)
            config: Engine configuration (defaults to built-in presets)
            image: Previously uploaded image, when editing an existing record
            initial_config: Previously committed config, when editing an existing record
            record_id: Identifier of the record being edited; saves update it
            timer_factory: Timer constructor for field-edit debouncing
        """
        self.app_config = config or Config()
        self.settings = self.app_config.settings
        if isinstance(transformation_type, TransformationType):
            self.transformation_type = transformation_type
        else:
            self.transformation_type = self.app_config.get_transformation_type(transformation_type)
        self.account_id = account_id
        self.ledger = ledger
        self.store = store
        self.url_builder = url_builder or get_url_builder(self.settings)
        self._timer_factory = timer_factory

        self._lock = threading.RLock()
        self._state = TransformState.IDLE
        self._image = None if image is None else dataclasses.replace(image)
        self._accumulated: TransformConfig = copy_config(initial_config or {})
        self._staged: TransformConfig | None = None
        self._fields: dict[str, Any] = {}
        self._title = ""
        self._record_id = record_id
        self._last_error: Exception | None = None
        self._committing = False
        self._saving = False
        self._closed = False
        self._debouncers: dict[str, ChangeDebouncer] = {}
        self._listeners: list[StateListener] = []

        if image is not None and self.transformation_type.auto_stage:
            self._stage(self.transformation_type.default_directive())

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> TransformState:
        with self._lock:
            return self._state

    @property
    def staged(self) -> TransformConfig | None:
        """Copy of the directive waiting for apply, or None."""
        with self._lock:
            return None if self._staged is None else copy_config(self._staged)

    @property
    def accumulated(self) -> TransformConfig:
        """Copy of every committed transform, keyed by type tag."""
        with self._lock:
            return copy_config(self._accumulated)

    @property
    def image(self) -> ImageState | None:
        with self._lock:
            return None if self._image is None else dataclasses.replace(self._image)

    @property
    def fields(self) -> dict[str, Any]:
        """Raw form values as last typed, before debouncing."""
        with self._lock:
            return dict(self._fields)

    @property
    def last_error(self) -> Exception | None:
        with self._lock:
            return self._last_error

    @property
    def record_id(self) -> str | None:
        with self._lock:
            return self._record_id

    @property
    def is_committing(self) -> bool:
        with self._lock:
            return self._committing

    @property
    def is_saving(self) -> bool:
        with self._lock:
            return self._saving

    @property
    def can_apply(self) -> bool:
        """True when the shell should enable its apply trigger."""
        with self._lock:
            return not self._closed and not self._committing and self._staged is not None

    @property
    def can_save(self) -> bool:
        """True when the shell should enable its save trigger."""
        with self._lock:
            return (
                not self._closed
                and not self._saving
                and bool(self._accumulated)
                and self._image is not None
                and bool(self._image.public_id)
            )

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback receiving (old_state, new_state) on every transition."""
        with self._lock:
            self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def upload(self, image: ImageState) -> None:
        """Replace the source image.

        Types that need no user input stage their default config right away.
        """
        with self._lock:
            self._check_open()
            self._image = dataclasses.replace(image)
            logger.debug("Image set: %s (%sx%s)", image.public_id, image.width, image.height)
            if self.transformation_type.auto_stage:
                self._stage(self.transformation_type.default_directive())

    def set_title(self, title: str) -> None:
        with self._lock:
            self._check_open()
            self._title = title

    def edit_field(self, field_name: str, value: Any) -> None:
        """Record a free-text edit and schedule it for staging.

        The raw value is kept immediately; staging waits for
        `settings.debounce_delay_ms` of quiet on this field, and only the
        last value typed within that window is staged.
        """
        parameter = FIELD_PARAMETERS.get(field_name, field_name)
        with self._lock:
            self._check_open()
            self._fields[field_name] = value
            debouncer = self._debouncers.get(field_name)
            if debouncer is None:
                debouncer = ChangeDebouncer(
                    self._stage_parameter,
                    self.settings.debounce_delay_ms,
                    timer_factory=self._timer_factory,
                )
                self._debouncers[field_name] = debouncer
        debouncer(parameter, value)

    def flush_pending_edits(self) -> int:
        """Stage every pending field edit now.

        Returns:
            Number of edits staged
        """
        with self._lock:
            self._check_open()
            debouncers = list(self._debouncers.values())
        return sum(1 for debouncer in debouncers if debouncer.flush())

    def select_aspect_ratio(self, key: str) -> None:
        """Apply an aspect-ratio preset to the image and stage the type's defaults.

        This is a discrete choice, so it is staged without debouncing.

        Raises:
            ConfigError: If `key` is not a known preset
        """
        presets = self.app_config.aspect_ratios
        if key not in presets:
            available = ", ".join(presets)
            raise ConfigError(
                f"Unknown aspect ratio '{key}'",
                field="aspect_ratio",
                suggestion=f"Valid values are: {available}",
            )
        preset = presets[key]

        with self._lock:
            self._check_open()
            self._fields["aspectRatio"] = key
            if self._image is not None:
                self._image.aspect_ratio = key
                self._image.width = preset.width
                self._image.height = preset.height
            self._stage(self.transformation_type.default_directive())

    def _stage_parameter(self, parameter: str, value: Any) -> None:
        with self._lock:
            if self._closed:
                return
            self._stage(stage_parameter(self._staged, self.transformation_type.type, parameter, value))

    def _stage(self, directive: TransformConfig) -> None:
        # Caller holds the lock
        self._staged = directive
        logger.debug("Staged directive: %s", directive)
        if not self._committing:
            self._set_state(TransformState.STAGED)

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    def has_sufficient_credits(self) -> bool:
        """Check whether the account can pay for one apply."""
        return self.ledger.balance(self.account_id) >= self.settings.credit_fee

    def apply(self) -> CommitResult:
        """Merge the staged directive and charge the credit fee.

        The ledger is called exactly once, outside the controller lock. The
        merged config is published only after the deduction succeeds; on
        failure the accumulated config and the staged directive are left
        exactly as they were, the controller enters the error state and the
        ledger's exception propagates unchanged.

        Returns:
            CommitResult with the new config and balance

        Raises:
            NoStagedDirectiveError: If nothing is staged
            CommitInProgressError: If another apply is in flight
            InsufficientCreditsError: If the balance does not cover the fee
            LedgerUnavailableError: If the ledger cannot be reached
        """
        fee = self.settings.credit_fee
        with self._lock:
            self._check_open()
            if self._committing:
                raise CommitInProgressError(
                    "A transformation is already being applied",
                    context={"account": self.account_id},
                )
            if self._staged is None:
                raise NoStagedDirectiveError("No transformation staged")
            staged = self._staged
            merged = merge_directive(staged, self._accumulated)
            self._committing = True
            self._set_state(TransformState.COMMITTING)

        try:
            new_balance = self.ledger.deduct(self.account_id, fee)
        except Exception as e:
            with self._lock:
                self._committing = False
                if not self._closed:
                    self._last_error = e
                    self._set_state(TransformState.ERROR)
            logger.warning("Apply failed for %s: %s", self.account_id, e)
            raise

        with self._lock:
            self._committing = False
            if self._closed:
                logger.warning(
                    "Controller closed while applying; discarding config (balance now %d)",
                    new_balance,
                )
                return CommitResult(config=copy_config(merged), new_balance=new_balance, fee=fee)

            self._accumulated = merged
            # An edit staged while the deduction was in flight stays staged
            if self._staged is staged:
                self._staged = None
            self._last_error = None
            self._set_state(TransformState.COMMITTED)
            self._set_state(TransformState.STAGED if self._staged is not None else TransformState.IDLE)
            result = CommitResult(config=copy_config(merged), new_balance=new_balance, fee=fee)

        logger.info(
            "Applied %s transformation (%d credit(s), balance %d)",
            self.transformation_type.type,
            fee,
            new_balance,
        )
        return result

    def acknowledge_error(self) -> Exception | None:
        """Surface the last error and leave the error state.

        Returns:
            The error that put the controller in the error state, if any
        """
        with self._lock:
            error = self._last_error
            self._last_error = None
            if self._state == TransformState.ERROR:
                self._set_state(TransformState.STAGED if self._staged is not None else TransformState.IDLE)
            return error

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def build_descriptor(self) -> TransformDescriptor:
        """Freeze the current image and accumulated config into a descriptor.

        Raises:
            NothingToSaveError: If no image is uploaded or nothing was committed
        """
        with self._lock:
            image = self._image
            if image is None or not image.public_id:
                raise NothingToSaveError("No image uploaded")
            if not self._accumulated:
                raise NothingToSaveError(
                    "No transformation applied yet",
                    context={"public_id": image.public_id},
                )

            width, height = resolve_output_size(
                self.transformation_type.type,
                image,
                presets=self.app_config.aspect_ratios,
                default=self.settings.default_dimension,
            )
            config = copy_config(self._accumulated)
            url = self.url_builder.build(image.public_id, width, height, copy_config(config))
            return TransformDescriptor(
                public_id=image.public_id,
                transformation_type=self.transformation_type.type,
                width=width,
                height=height,
                config=config,
                transformation_url=url,
                title=self._title,
                secure_url=image.secure_url,
                aspect_ratio=self._fields.get("aspectRatio") or image.aspect_ratio,
                prompt=self._fields.get("prompt"),
                color=self._fields.get("color"),
                record_id=self._record_id,
            )

    def save(self) -> str:
        """Persist the accumulated transformation.

        The first save creates a record; later saves update it.

        Returns:
            The stored record's identifier

        Raises:
            NothingToSaveError: If no image is uploaded or nothing was committed
            CommitInProgressError: If another save is in flight
            PersistenceError: If the adapter fails (not retried)
        """
        with self._lock:
            self._check_open()
            if self.store is None:
                raise TransformError("No persistence adapter configured")
            if self._saving:
                raise CommitInProgressError(
                    "A save is already in progress",
                    context={"record_id": self._record_id},
                )
            descriptor = self.build_descriptor()
            self._saving = True

        try:
            record_id = self.store.save(descriptor)
        except Exception as e:
            logger.error("Failed to save %s: %s", descriptor.public_id, e)
            raise
        finally:
            with self._lock:
                self._saving = False

        with self._lock:
            if not self._closed:
                self._record_id = record_id
        logger.info("Saved %s as record %s", descriptor.public_id, record_id)
        return record_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Tear down the controller and cancel pending field edits.

        An apply already waiting on the ledger still completes on the
        ledger side, but its result is no longer published here.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            debouncers = list(self._debouncers.values())
            self._debouncers.clear()
        cancelled = sum(1 for debouncer in debouncers if debouncer.close())
        logger.debug("Controller closed (%d pending edit(s) dropped)", cancelled)

    def __enter__(self) -> "TransformController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ControllerClosedError("Controller has been closed")

    def _set_state(self, new_state: TransformState) -> None:
        # Caller holds the lock
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        logger.debug("State %s -> %s", old_state.value, new_state.value)
        for listener in list(self._listeners):
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception("State listener %r failed", listener)
