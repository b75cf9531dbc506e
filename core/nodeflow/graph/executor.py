"""
Workflow Executor - Runs workflow graphs.

The executor:
1. Builds the adjacency index and resolves a handler for every node
2. Queues every node without incoming edges
3. Dequeues nodes one at a time, dispatching those whose predecessors are
   all terminal, skipping those whose predecessors were all skipped
4. Prunes the branches conditional nodes did not take
5. Returns an ExecutionResult once the queue drains

Handler failures are recorded and traversal continues (best effort):
a failed node's successors run with a None input. Pass ``fail_fast=True``
to stop the run at the first failed node instead.

Only one handler is in flight at a time, even when independent start nodes
could run concurrently.
"""

import asyncio
import inspect
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from nodeflow.errors import ExecutionCancelled, NodeHandlerNotFound, NodeTimeoutError
from nodeflow.graph.edge import GraphIndex, GraphSpec, NodeSpec
from nodeflow.graph.node import CancellationToken, NodeContext, NodeHandler, NodeResult
from nodeflow.graph.pruner import BranchPruner
from nodeflow.graph.readiness import Readiness, ReadinessTracker, RunState
from nodeflow.graph.registry import NodeRegistry
from nodeflow.graph.result import build_run_result, empty_workflow_result
from nodeflow.observability import set_trace_context
from nodeflow.observability.logging import trace_context
from nodeflow.runtime.event_bus import EventBus
from nodeflow.schemas.execution import ExecutionResult, ExecutionStatus, NodeExecution

# Called with a NodeExecution; may be sync or async
NodeCallback = Callable[[NodeExecution], Any]


@dataclass
class NodeOutcome:
    """What dispatching one node produced."""

    record: NodeExecution
    result: NodeResult | None = None
    cancelled: bool = False

    @property
    def failed(self) -> bool:
        return self.record.status == ExecutionStatus.ERROR


class WorkflowExecutor:
    """
    Executes workflow graphs against a trigger message.

    Example:
        executor = WorkflowExecutor(registry=create_default_registry())

        result = await executor.execute(
            graph=graph,
            message="hello there",
            on_node_start=lambda rec: print("▶", rec.node_label),
            on_node_complete=lambda rec: print("✓", rec.node_label, rec.status),
        )
        print(result.final_output)
    """

    def __init__(
        self,
        registry: NodeRegistry | None = None,
        event_bus: EventBus | None = None,
        node_timeout: float | None = None,
        fail_fast: bool = False,
    ):
        """
        Initialize the executor.

        Args:
            registry: Handlers by node type
            event_bus: Optional event bus for run and node lifecycle events
            node_timeout: Default per-node timeout in seconds (None = no limit).
                A node's own ``config["timeout"]`` takes precedence.
            fail_fast: Stop the run after the first failed node
        """
        self.registry = registry or NodeRegistry()
        self.node_timeout = node_timeout
        self.fail_fast = fail_fast
        self.logger = logging.getLogger(__name__)
        self._event_bus = event_bus

    async def execute(
        self,
        graph: GraphSpec,
        message: str = "",
        on_node_start: NodeCallback | None = None,
        on_node_complete: NodeCallback | None = None,
        cancel_token: CancellationToken | None = None,
        run_id: str | None = None,
    ) -> ExecutionResult:
        """
        Run a graph once.

        Args:
            graph: The workflow graph
            message: Trigger message handed to every handler
            on_node_start: Called with the RUNNING record when a node is dispatched
            on_node_complete: Called with the finished record (success or error)
            cancel_token: Optional token; cancelling it stops the run
            run_id: Optional run ID (generated when omitted)

        Returns:
            ExecutionResult with the execution log and final output
        """
        run_id = run_id or uuid.uuid4().hex
        context_token = trace_context.set(
            {
                **(trace_context.get() or {}),
                "run_id": run_id,
                "workflow_id": graph.id or None,
                "node_id": None,
            }
        )
        try:
            return await self._run(
                graph, message, on_node_start, on_node_complete, cancel_token, run_id
            )
        finally:
            # The caller's context is restored, run and node ids included
            trace_context.reset(context_token)

    async def _run(
        self,
        graph: GraphSpec,
        message: str,
        on_node_start: NodeCallback | None,
        on_node_complete: NodeCallback | None,
        cancel_token: CancellationToken | None,
        run_id: str,
    ) -> ExecutionResult:
        started_at = time.monotonic()

        index = GraphIndex.build(graph)
        if len(index) == 0:
            self.logger.warning("⚠ Empty workflow, nothing to run")
            return empty_workflow_result(run_id)

        handlers = self.registry.resolve(index)

        state = RunState()
        tracker = ReadinessTracker(index, state)
        pruner = BranchPruner(index, tracker)

        start_nodes = index.start_nodes()
        for node in start_nodes:
            state.enqueue(node.id)

        self.logger.info(f"🚀 Starting workflow run: {graph.name or graph.id or run_id}")
        self.logger.info(f"   Nodes: {len(index)}, start nodes: {[n.id for n in start_nodes]}")
        await self._emit(
            "emit_execution_started",
            run_id=run_id,
            workflow_id=graph.id or None,
            message=message,
            node_count=len(index),
        )

        executions: list[NodeExecution] = []
        run_error: str | None = None
        cancelled = False

        while state.queue:
            if cancel_token is not None and cancel_token.cancelled:
                cancelled = True
                break

            entry = state.queue.popleft()
            node_id = entry.node_id
            verdict = tracker.check(node_id)

            if verdict == Readiness.DONE:
                continue

            if verdict == Readiness.WAITING:
                # Re-enqueued by whichever predecessor resolves last
                self.logger.debug(
                    f"   ⏳ '{node_id}' waiting on "
                    f"{tracker.pending_predecessors(node_id)} predecessor(s)"
                )
                continue

            if verdict == Readiness.SKIP:
                tracker.propagate_skip(node_id)
                self.logger.info(f"   ⊘ Skipped '{node_id}' (all predecessors skipped)")
                await self._emit(
                    "emit_node_skipped",
                    run_id=run_id,
                    node_id=node_id,
                    reason="all predecessors skipped",
                    workflow_id=graph.id or None,
                )
                continue

            node = index.nodes[node_id]
            resolved_input = tracker.resolve_input(node_id, entry.carried_input)
            outcome = await self._dispatch(
                node=node,
                handler=handlers.get(node_id),
                resolved_input=resolved_input,
                message=message,
                run_id=run_id,
                workflow_id=graph.id or None,
                cancel_token=cancel_token,
                on_node_start=on_node_start,
                on_node_complete=on_node_complete,
            )
            executions.append(outcome.record)

            if outcome.cancelled:
                tracker.mark_executed(node_id, None)
                cancelled = True
                break

            if outcome.failed:
                tracker.mark_executed(node_id, None)
                if self.fail_fast:
                    run_error = f"Node '{node_id}' failed: {outcome.record.error}"
                    self.logger.error(f"✗ Halting run (fail_fast): {run_error}")
                    break
                for target in index.successors(node_id):
                    state.enqueue(target, None)
                continue

            result = outcome.result
            handler = handlers.get(node_id)
            tracker.mark_executed(node_id, result.output)

            if result.is_conditional or (handler is not None and handler.conditional):
                branch = result.branch or ""
                pruned = pruner.apply(node_id, branch, result.output)
                await self._emit(
                    "emit_branch_selected",
                    run_id=run_id,
                    node_id=node_id,
                    branch=branch,
                    pruned=pruned,
                    workflow_id=graph.id or None,
                )
                for skipped_id in pruned:
                    await self._emit(
                        "emit_node_skipped",
                        run_id=run_id,
                        node_id=skipped_id,
                        reason=f"branch '{branch}' not taken at '{node_id}'",
                        workflow_id=graph.id or None,
                    )
            else:
                for target in index.successors(node_id):
                    state.enqueue(target, result.output)

        if cancelled:
            run_error = (cancel_token.reason if cancel_token else None) or "Execution cancelled"
            self.logger.warning(f"⏹ Run cancelled: {run_error}")

        unreached = tracker.unreached() if not (cancelled or run_error) else []
        if unreached:
            self.logger.warning(
                f"⚠ {len(unreached)} node(s) never became ready (cycle or starved input): "
                f"{unreached}"
            )

        total_duration_ms = int((time.monotonic() - started_at) * 1000)
        run_result = build_run_result(
            executions=executions,
            total_duration_ms=total_duration_ms,
            run_id=run_id,
            executed=[nid for nid in index.order if nid in state.executed],
            skipped=[nid for nid in index.order if nid in state.skipped],
            unreached=unreached,
            error=run_error,
            cancelled=cancelled,
        )

        self.logger.info(
            f"🏁 Run finished in {total_duration_ms}ms: {len(executions)} executed, "
            f"{len(state.skipped)} skipped, {len(run_result.failed_nodes)} failed"
        )

        if cancelled:
            await self._emit(
                "emit_execution_cancelled",
                run_id=run_id,
                reason=run_error,
                workflow_id=graph.id or None,
            )
        elif run_error:
            await self._emit(
                "emit_execution_failed",
                run_id=run_id,
                error=run_error,
                workflow_id=graph.id or None,
            )
        else:
            await self._emit(
                "emit_execution_completed",
                run_id=run_id,
                workflow_id=graph.id or None,
                final_output=run_result.final_output,
                duration_ms=total_duration_ms,
            )

        return run_result

    async def _dispatch(
        self,
        node: NodeSpec,
        handler: NodeHandler | None,
        resolved_input: Any,
        message: str,
        run_id: str,
        workflow_id: str | None,
        cancel_token: CancellationToken | None,
        on_node_start: NodeCallback | None,
        on_node_complete: NodeCallback | None,
    ) -> NodeOutcome:
        """Run one node: start event, handler call, completion event."""
        set_trace_context(node_id=node.id)
        record = NodeExecution.started(node, resolved_input)

        self.logger.info(f"▶ {node.display_label} ({node.type})")
        await self._notify(on_node_start, record)
        await self._emit(
            "emit_node_started",
            run_id=run_id,
            node_id=node.id,
            node_type=node.type,
            workflow_id=workflow_id,
        )

        ctx = NodeContext(
            node=node,
            input=resolved_input,
            message=message,
            config=dict(node.config),
            run_id=run_id,
            cancel_token=cancel_token,
        )
        timeout = self._timeout_for(node)

        result: NodeResult | None = None
        error: str | None = None
        cancelled = False
        try:
            if handler is None:
                raise NodeHandlerNotFound(node.type)
            result = await self._invoke(handler, ctx, timeout)
            if not result.success:
                error = result.error or "Node reported failure"
        except ExecutionCancelled as e:
            cancelled = True
            error = str(e) or "Execution cancelled"
        except TimeoutError as e:
            if timeout is None:
                # Raised by the handler itself, not by a node timeout
                error = str(e) or type(e).__name__
            else:
                error = str(NodeTimeoutError(node.id, timeout))
        except Exception as e:
            error = str(e) or type(e).__name__
            self.logger.debug(f"Handler for '{node.id}' raised", exc_info=True)

        if error is not None:
            finished = record.finish(error=error)
            self.logger.warning(f"   ✗ {node.display_label} failed: {error}")
        else:
            finished = record.finish(output=result.output, branch=result.branch)
            self.logger.info(
                f"   ✓ {node.display_label} done in {finished.duration_ms}ms"
                + (f" (branch: {result.branch})" if result.branch is not None else "")
            )

        await self._notify(on_node_complete, finished)
        await self._emit(
            "emit_node_completed",
            run_id=run_id,
            node_id=node.id,
            status=finished.status.value,
            duration_ms=finished.duration_ms,
            error=finished.error,
            workflow_id=workflow_id,
        )
        return NodeOutcome(record=finished, result=result, cancelled=cancelled)

    async def _invoke(
        self,
        handler: NodeHandler,
        ctx: NodeContext,
        timeout: float | None,
    ) -> NodeResult:
        """Await a handler, bounded by its timeout and the run's cancel token."""
        call = handler.execute(ctx)
        if not inspect.isawaitable(call):
            # Handler with a plain (sync) execute()
            return call if isinstance(call, NodeResult) else NodeResult(output=call)
        if timeout is not None:
            call = asyncio.wait_for(call, timeout=timeout)

        token = ctx.cancel_token
        if token is None:
            result = await call
        else:
            if token.cancelled:
                if inspect.iscoroutine(call):
                    call.close()
                raise ExecutionCancelled(token.reason or "Execution cancelled")
            task = asyncio.ensure_future(call)
            cancel_wait = asyncio.ensure_future(token.wait())
            try:
                done, _ = await asyncio.wait(
                    {task, cancel_wait}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                cancel_wait.cancel()

            if task not in done:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                raise ExecutionCancelled(token.reason or "Execution cancelled")
            result = task.result()

        if not isinstance(result, NodeResult):
            result = NodeResult(output=result)
        return result

    def _timeout_for(self, node: NodeSpec) -> float | None:
        value = node.config.get("timeout")
        if value in (None, ""):
            return self.node_timeout
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            self.logger.warning(f"⚠ Ignoring invalid timeout {value!r} on node '{node.id}'")
            return self.node_timeout
        return timeout if timeout > 0 else None

    async def _notify(self, callback: NodeCallback | None, record: NodeExecution) -> None:
        """Invoke an observer callback; its failures never affect the run."""
        if callback is None:
            return
        try:
            res = callback(record)
            if inspect.isawaitable(res):
                await res
        except Exception as e:
            self.logger.error(f"Node callback error for '{record.node_id}': {e}")

    async def _emit(self, method: str, **kwargs: Any) -> None:
        if self._event_bus is not None:
            await getattr(self._event_bus, method)(**kwargs)
