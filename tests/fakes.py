"""Scripted stand-ins for the browser driver and the language model."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel

from browsercrew.types import TabInfo, ToolCall


class FakeDriver:
    """In-memory browser with scriptable action failures.

    ``act_errors`` are raised by ``act`` in order; once exhausted ``act``
    succeeds. ``page_changes`` maps an act instruction to the (url, title)
    the page shows afterwards; ``popups`` maps one to a URL it opens in a new
    tab. ``list_tabs_error`` makes ``list_tabs`` raise.
    """

    def __init__(self, url: str = "about:blank", title: str = "", page_text: str = "Welcome"):
        self.url = url
        self.page_title = title
        self.page_text = page_text
        self.act_errors: List[BaseException] = []
        self.page_changes: Dict[str, tuple[str, str]] = {}
        self.popups: Dict[str, str] = {}
        self.list_tabs_error: Optional[BaseException] = None
        self.observations: List[Any] = []
        self.actions: List[str] = []
        self.visited: List[str] = []
        self._tabs: List[Dict[str, str]] = [{"url": url, "title": title}]
        self._active = 0

    async def goto(self, url: str) -> None:
        self.visited.append(url)
        self.url = url
        self._tabs[self._active]["url"] = url

    async def act(self, instruction: str) -> Any:
        self.actions.append(instruction)
        if self.act_errors:
            raise self.act_errors.pop(0)
        if instruction in self.page_changes:
            self.url, self.page_title = self.page_changes[instruction]
            self._tabs[self._active] = {"url": self.url, "title": self.page_title}
        if instruction in self.popups:
            self._tabs.append({"url": self.popups[instruction], "title": ""})
        return "done"

    async def observe(self, instruction: Optional[str] = None) -> List[Any]:
        return list(self.observations)

    async def extract(self, instruction: Optional[str] = None) -> Any:
        if instruction is None:
            return {"page_text": self.page_text}
        return {"extraction": self.page_text}

    async def screenshot(self) -> bytes:
        return b""

    async def current_url(self) -> str:
        return self.url

    async def title(self) -> str:
        return self.page_title

    async def list_tabs(self) -> List[TabInfo]:
        if self.list_tabs_error is not None:
            raise self.list_tabs_error
        return [
            TabInfo(index=i, title=tab["title"], url=tab["url"], is_active=i == self._active)
            for i, tab in enumerate(self._tabs)
        ]

    async def new_tab(self, url: Optional[str] = None) -> TabInfo:
        self._tabs.append({"url": url or "about:blank", "title": ""})
        self._active = len(self._tabs) - 1
        self.url = self._tabs[self._active]["url"]
        return TabInfo(index=self._active, title="", url=self.url, is_active=True)

    async def switch_tab(self, index: int) -> TabInfo:
        self._active = index
        tab = self._tabs[index]
        self.url, self.page_title = tab["url"], tab["title"]
        return TabInfo(index=index, title=tab["title"], url=tab["url"], is_active=True)

    async def close_tab(self, index: int) -> None:
        self._tabs.pop(index)
        self._active = min(self._active, len(self._tabs) - 1)


class ScriptedLanguageModel:
    """Language model that replays scripted answers.

    Structured answers are queued per schema class name. A queue that runs dry
    keeps repeating its ``repeat`` answer, if one is set, and fails otherwise.
    Entries may be dicts, model instances or exceptions to raise.
    """

    def __init__(self) -> None:
        self.structured: Dict[str, deque] = defaultdict(deque)
        self.repeat: Dict[str, Any] = {}
        self.tool_calls: deque = deque()
        self.repeat_tool_calls: Optional[List[ToolCall]] = None
        self.calls: List[str] = []
        self.tool_descriptors: List[Sequence[Dict[str, Any]]] = []

    def script(self, schema_name: str, *answers: Any) -> "ScriptedLanguageModel":
        self.structured[schema_name].extend(answers)
        return self

    def always(self, schema_name: str, answer: Any) -> "ScriptedLanguageModel":
        self.repeat[schema_name] = answer
        return self

    def propose(self, *batches: List[ToolCall]) -> "ScriptedLanguageModel":
        self.tool_calls.extend(batches)
        return self

    def count(self, schema_name: str) -> int:
        return self.calls.count(schema_name)

    async def generate_structured(self, schema: Type[BaseModel], messages: Sequence[Any]) -> BaseModel:
        name = schema.__name__
        self.calls.append(name)
        queue = self.structured[name]
        if queue:
            answer = queue.popleft()
        elif name in self.repeat:
            answer = self.repeat[name]
        else:
            raise AssertionError(f"Unexpected {name} request")

        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, BaseModel):
            return answer
        return schema.model_validate(answer)

    async def propose_tool_calls(self, messages: Sequence[Any], tools: Sequence[Dict[str, Any]]) -> List[ToolCall]:
        self.calls.append("propose_tool_calls")
        self.tool_descriptors.append(tools)
        if self.tool_calls:
            batch = self.tool_calls.popleft()
        elif self.repeat_tool_calls is not None:
            batch = self.repeat_tool_calls
        else:
            raise AssertionError("Unexpected tool call proposal request")
        # Fresh ids per proposal, as a real model would produce.
        return [ToolCall(name=call.name, args=dict(call.args)) for call in batch]

    async def generate_text(self, messages: Sequence[Any]) -> str:
        self.calls.append("generate_text")
        return "ok"
