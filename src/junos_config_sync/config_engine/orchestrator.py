"""Transaction orchestrator for resource operations.

Every write runs as one transaction on a fresh session:

    open session -> lock -> [pre-check] -> delete/set -> commit -> [post-check]

A failure after the lock is taken discards the candidate changes and
releases the lock (``config_clear``); a successful transaction only
unlocks. Cleanup problems are reported as warnings and never replace the
primary error. Nothing is retried.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Optional

from ..devices.base import CommitError, DeviceError, DeviceSession
from ..utils.audit_log import ChangeTracker
from ..utils.logging_config import timed_section
from .errors import ConfigSetError, ImportIdError, ReadError
from .schema import AttrPath, OperationResult

if TYPE_CHECKING:
    from ..devices.client import Client
    from ..resources.base import Resource

logger = logging.getLogger(__name__)

# Diagnostic summaries
START_SESSION_ERR = "Start Session Error"
CONFIG_LOCK_ERR = "Config Lock Error"
PRE_CHECK_ERR = "Pre Check Error"
POST_CHECK_ERR = "Post Check Error"
CONFIG_SET_ERR = "Config Set Error"
CONFIG_DEL_ERR = "Config Del Error"
CONFIG_COMMIT_ERR = "Config Commit Error"
CONFIG_COMMIT_WARN = "Config Commit Warning"
CONFIG_READ_ERR = "Config Read Error"
CONFIG_UNLOCK_WARN = "Config Unlock Warning"
CONFIG_CLEAR_UNLOCK_WARN = "Config Clear/Unlock Warning"
BAD_ID_ERR = "Bad ID Format"
NOT_FOUND_ERR = "Not Found Error"


class ReadCoordinator:
    """Serializes reads from live sessions across the process."""

    def __init__(self):
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def reading(self):
        async with self._lock:
            yield


class NoopReadCoordinator(ReadCoordinator):
    """Coordinator that lets every read through."""

    @asynccontextmanager
    async def reading(self):
        yield


def _set_error(result: OperationResult, err: ConfigSetError) -> None:
    result.add_error(CONFIG_SET_ERR, str(err), err.path)


class Orchestrator:
    """
    Run resource operations against one device.

    Args:
        client: Client opening sessions on the device
        coordinator: Read coordinator shared by every orchestrator of the
            process (a private one is created when omitted)
        tracker: Audit change tracker (one for the client's device by default)
    """

    def __init__(
        self,
        client: "Client",
        coordinator: Optional[ReadCoordinator] = None,
        tracker: Optional[ChangeTracker] = None,
    ):
        self.client = client
        self.coordinator = coordinator or ReadCoordinator()
        self.tracker = tracker or ChangeTracker(client.device_id)

    @property
    def device_id(self) -> str:
        return self.client.device_id

    # --- helpers ---

    def _check_key(self, plan: "Resource", result: OperationResult) -> bool:
        for name in plan.key_fields:
            if getattr(plan, name) == "":
                result.add_error(
                    f"Empty {name.replace('_', ' ').title()}",
                    f"could not create {plan.junos_name} with empty {name}",
                    AttrPath.root(name),
                )
                return False
        return True

    async def _open(self, result: OperationResult) -> Optional[DeviceSession]:
        try:
            return await self.client.start_new_session()
        except DeviceError as e:
            result.add_error(START_SESSION_ERR, str(e))
            return None

    async def _lock(self, session: DeviceSession, result: OperationResult) -> bool:
        try:
            await session.config_lock()
        except DeviceError as e:
            result.add_error(CONFIG_LOCK_ERR, str(e))
            return False
        return True

    async def _release(self, session: DeviceSession, result: OperationResult) -> None:
        """Unlock after a commit, or discard and unlock after a failure."""
        if result.has_error:
            result.add_warnings(CONFIG_CLEAR_UNLOCK_WARN, await session.config_clear())
        else:
            result.add_warnings(CONFIG_UNLOCK_WARN, await session.config_unlock())

    async def _commit(self, session: DeviceSession, message: str, result: OperationResult) -> list[str]:
        """Commit and return the warnings; errors end up in ``result``."""
        try:
            warnings = await session.commit_conf(message)
        except CommitError as e:
            result.add_warnings(CONFIG_COMMIT_WARN, e.warnings)
            result.add_error(CONFIG_COMMIT_ERR, str(e))
            return e.warnings
        except DeviceError as e:
            result.add_error(CONFIG_COMMIT_ERR, str(e))
            return []
        result.add_warnings(CONFIG_COMMIT_WARN, warnings)
        return warnings

    def _audit(
        self,
        resource: "Resource",
        operation: str,
        result: OperationResult,
        lines: list[str],
        fake: bool = False,
    ) -> None:
        primary = result.primary_error
        self.tracker.log_change(
            resource_type=resource.type_name,
            operation=operation,
            resource_id=resource.id or "",
            success=not result.has_error,
            lines=lines,
            warnings=[d.detail for d in result.warnings],
            error=primary.detail if primary else None,
            fake=fake,
        )

    async def _fake_write(
        self,
        resource: "Resource",
        operation: str,
        build,
        result: OperationResult,
    ) -> OperationResult:
        """Append the lines to the set file instead of a device."""
        session = self.client.new_session_without_netconf()
        lines: list[str] = []
        try:
            lines = build()
            await session.config_set(lines)
        except ConfigSetError as e:
            _set_error(result, e)
        except DeviceError as e:
            result.add_error(CONFIG_SET_ERR, str(e))
        finally:
            await session.close()
        if not result.has_error and operation != "delete":
            resource.fill_id()
            result.data = resource
        self._audit(resource, operation, result, lines, fake=True)
        return result

    # --- operations ---

    async def create(self, plan: "Resource") -> OperationResult:
        """
        Create the resource described by ``plan``.

        Returns:
            OperationResult whose data is the plan with its id filled
        """
        result = OperationResult()
        result.extend(plan.validate())
        if result.has_error or not self._check_key(plan, result):
            return result

        if self.client.fake_create_setfile:
            return await self._fake_write(plan, "create", plan.config_set, result)

        session = await self._open(result)
        if session is None:
            return result
        lines: list[str] = []
        async with session, timed_section("create", self.device_id, resource=plan.type_name):
            result.extend(await plan.compatibility_check(session))
            if result.has_error or not await self._lock(session, result):
                return result
            try:
                try:
                    result.extend(await plan.pre_create_check(session))
                except DeviceError as e:
                    result.add_error(PRE_CHECK_ERR, str(e))
                if result.has_error:
                    return result

                try:
                    lines = plan.config_set()
                    await session.config_set(lines)
                except ConfigSetError as e:
                    _set_error(result, e)
                    return result
                except DeviceError as e:
                    result.add_error(CONFIG_SET_ERR, str(e))
                    return result

                await self._commit(session, f"create resource {plan.type_name}", result)
                if result.has_error:
                    return result

                try:
                    result.extend(await plan.post_create_check(session))
                except DeviceError as e:
                    result.add_error(POST_CHECK_ERR, str(e))
                if result.has_error:
                    return result

                plan.fill_id()
                result.data = plan
            finally:
                await self._release(session, result)
                self._audit(plan, "create", result, lines)
        return result

    async def read_key(
        self,
        resource_cls: type,
        key: tuple[str, ...],
        state: Optional["Resource"] = None,
    ) -> OperationResult:
        """
        Read a resource by its key components.

        A resource missing from the device sets ``removed`` instead of
        producing an error.
        """
        result = OperationResult()
        session = await self._open(result)
        if session is None:
            return result
        async with session:
            try:
                async with self.coordinator.reading():
                    data = await resource_cls.read(session, *key)
            except (DeviceError, ReadError) as e:
                result.add_error(CONFIG_READ_ERR, str(e))
                return result
        if data.id is None:
            result.removed = True
            return result
        if state is not None:
            data.after_read(state)
        result.data = data
        return result

    async def read(self, state: "Resource") -> OperationResult:
        """Refresh ``state`` from the device."""
        return await self.read_key(type(state), state.key_from_state(), state)

    async def update(self, plan: "Resource", state: "Resource") -> OperationResult:
        """
        Replace the configuration of ``state`` with ``plan``.

        The options flavour of the deleter runs first, then the plan is set
        and committed in the same transaction.
        """
        result = OperationResult()
        result.extend(plan.validate())
        if result.has_error:
            return result
        result.extend(plan.update_diagnostics(state))

        if self.client.fake_update_also:
            def build() -> list[str]:
                return state.config_delete_opts(plan) + plan.config_set()
            return await self._fake_write(plan, "update", build, result)

        session = await self._open(result)
        if session is None:
            return result
        lines: list[str] = []
        async with session, timed_section("update", self.device_id, resource=plan.type_name):
            if not await self._lock(session, result):
                return result
            try:
                lines = state.config_delete_opts(plan)
                try:
                    await session.config_set(lines)
                except DeviceError as e:
                    result.add_error(CONFIG_DEL_ERR, str(e))
                    return result

                try:
                    set_lines = plan.config_set()
                    lines = lines + set_lines
                    await session.config_set(set_lines)
                except ConfigSetError as e:
                    _set_error(result, e)
                    return result
                except DeviceError as e:
                    result.add_error(CONFIG_SET_ERR, str(e))
                    return result

                await self._commit(session, f"update resource {plan.type_name}", result)
                if result.has_error:
                    return result

                plan.fill_id()
                result.data = plan
            finally:
                await self._release(session, result)
                self._audit(plan, "update", result, lines)
        return result

    async def delete(self, state: "Resource") -> OperationResult:
        """Remove ``state`` from the device."""
        result = OperationResult()
        if state.skip_delete():
            logger.info(f"{state.type_name} {state.id}: destroy leaves the device untouched")
            return result

        if self.client.fake_delete_also:
            return await self._fake_write(state, "delete", state.config_delete, result)

        session = await self._open(result)
        if session is None:
            return result
        lines: list[str] = []
        async with session, timed_section("delete", self.device_id, resource=state.type_name):
            if not await self._lock(session, result):
                return result
            try:
                lines = state.config_delete()
                try:
                    await session.config_set(lines)
                except DeviceError as e:
                    result.add_error(CONFIG_DEL_ERR, str(e))
                    return result

                await self._commit(session, f"delete resource {state.type_name}", result)
            finally:
                await self._release(session, result)
                self._audit(state, "delete", result, lines)
        return result

    async def import_resource(self, resource_cls: type, import_id: str) -> OperationResult:
        """
        Read a resource from its import identifier.

        Returns:
            OperationResult with the resource, or a "not found" error
        """
        try:
            key = resource_cls.key_from_import_id(import_id)
        except ImportIdError as e:
            result = OperationResult()
            result.add_error(BAD_ID_ERR, str(e))
            return result

        result = await self.read_key(resource_cls, key)
        if result.removed:
            result.removed = False
            result.add_error(NOT_FOUND_ERR, resource_cls.not_found_detail(import_id))
        return result
