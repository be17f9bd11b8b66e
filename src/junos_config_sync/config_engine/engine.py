"""Main Config Engine - applies declared resources to one device.

Provides a single entry point for:
1. Parsing declared resources
2. Validating configuration
3. Reading the current state and calculating the diff
4. Creating or updating the resource (or previewing the lines)
"""
import logging
from typing import Any, Optional

from ..devices.client import Client
from ..utils.audit_log import ChangeTracker
from .diff import DiffEngine
from .errors import ConfigSetError
from .orchestrator import Orchestrator, ReadCoordinator, CONFIG_SET_ERR
from .parser import ConfigParser, ParseError, resource_class
from .schema import ApplyResult, ChangeType, OperationResult

logger = logging.getLogger(__name__)

PARSE_ERR = "Parse Error"


class ConfigEngine:
    """
    Main Config Engine for applying declared resources.

    Usage:
        engine = ConfigEngine(client)
        result = await engine.apply({
            "type": "junos_vlan",
            "config": {"name": "prod", "vlan_id": "100"},
        }, dry_run=True)
    """

    def __init__(
        self,
        client: Client,
        coordinator: Optional[ReadCoordinator] = None,
        tracker: Optional[ChangeTracker] = None,
    ):
        """
        Initialize the Config Engine.

        Args:
            client: Client of the target device
            coordinator: Read coordinator shared across engines (optional)
            tracker: Audit change tracker (optional)
        """
        self.client = client
        self.parser = ConfigParser()
        self.diff_engine = DiffEngine()
        self.orchestrator = Orchestrator(client, coordinator, tracker)

    def parse(self, declaration: dict[str, Any]) -> Any:
        """
        Parse one declaration into a typed resource.

        Raises:
            ParseError: If the declaration is invalid
        """
        type_name = declaration.get("type")
        if not type_name:
            raise ParseError("Missing required field: type")
        unknown = set(declaration) - {"type", "config"}
        if unknown:
            raise ParseError(f"Unknown declaration field(s): {', '.join(sorted(unknown))}")
        return self.parser.parse(resource_class(type_name), declaration.get("config"))

    async def apply(self, declaration: dict[str, Any], dry_run: bool = False) -> ApplyResult:
        """
        Bring one declared resource to its desired state.

        This is the main entry point. It:
        1. Parses and validates the declaration
        2. Reads the resource from the device
        3. Creates it when absent, updates it when different

        Args:
            declaration: Mapping with ``type`` and ``config``
            dry_run: If True, compute the lines without touching the device

        Returns:
            ApplyResult with the change made (or planned) and diagnostics
        """
        type_name = str(declaration.get("type", ""))
        try:
            plan = self.parse(declaration)
        except ParseError as e:
            result = ApplyResult(type_name, "", ChangeType.NO_CHANGE, dry_run=dry_run)
            result.result.add_error(PARSE_ERR, str(e), e.path)
            return result

        resource_id = ""
        if all(plan.key_from_state()):
            plan.fill_id()
            resource_id = plan.id
        result = ApplyResult(plan.type_name, resource_id, ChangeType.NO_CHANGE, dry_run=dry_run)

        validation = OperationResult(diagnostics=plan.validate())
        if validation.has_error:
            result.result.extend(validation.diagnostics)
            return result

        # Read current state
        current = None
        if resource_id:
            read = await self.orchestrator.read_key(type(plan), plan.key_from_state(), plan)
            if read.has_error:
                result.result.extend(read.diagnostics)
                return result
            current = read.data

        change, fields = self.diff_engine.calculate(plan, current)
        result.change_type = change
        result.changed_fields = fields
        if change == ChangeType.NO_CHANGE:
            logger.info(f"{plan.type_name} {resource_id}: no changes needed")
            result.result.data = current
            return result

        logger.info(
            f"{'DRY RUN: ' if dry_run else ''}{change.value} {plan.type_name} {resource_id}"
            + (f" ({', '.join(fields)})" if fields else "")
        )

        if dry_run:
            try:
                if change == ChangeType.MODIFY:
                    result.delete_lines = current.config_delete_opts(plan)
                result.set_lines = plan.config_set()
            except ConfigSetError as e:
                result.result.add_error(CONFIG_SET_ERR, str(e), e.path)
            return result

        if change == ChangeType.CREATE:
            op = await self.orchestrator.create(plan)
        else:
            op = await self.orchestrator.update(plan, current)
        result.result.extend(op.diagnostics)
        result.result.data = op.data
        return result

    async def apply_all(self, declarations: list[dict[str, Any]], dry_run: bool = False) -> list[ApplyResult]:
        """Apply declarations in order, stopping at the first failure."""
        results = []
        for declaration in declarations:
            result = await self.apply(declaration, dry_run=dry_run)
            results.append(result)
            if not result.success:
                logger.warning(f"Stopping after failed {result.type_name} {result.resource_id}")
                break
        return results

    async def import_resource(
        self,
        type_name: str,
        import_id: str,
        data_source: bool = False,
    ) -> OperationResult:
        """
        Read a resource (or data source) by its identifier.

        Raises:
            ParseError: If the type is unknown
        """
        cls = resource_class(type_name, data_source)
        return await self.orchestrator.import_resource(cls, import_id)

    async def destroy(self, type_name: str, import_id: str) -> OperationResult:
        """Remove a resource identified like an import."""
        found = await self.import_resource(type_name, import_id)
        if found.has_error:
            return found
        return await self.orchestrator.delete(found.data)
