"""把普通 Python 函数包装成可供模型调用的工具。

用法与 AIFunctionFactory 类似：

    def get_price(count: Annotated[int, "The number of pairs"]) -> float:
        '''Computes the price of socks, returning a value in dollars.'''

    tool = create_tool(get_price)

- 工具名取函数名（转为 snake_case），描述取 docstring 第一段；
- 参数描述来自 Annotated 中的字符串元数据；
- 调用前使用 pydantic TypeAdapter 对模型给出的参数做校验与类型转换。
"""

import dataclasses
import inspect
import json
import re
from dataclasses import dataclass, field
from typing import Annotated, Any, Callable, Dict, Optional, get_args, get_origin, get_type_hints

from pydantic import BaseModel, TypeAdapter

from .definitions import ToolDef, ToolParam

_JSON_TYPES = {int: "integer", float: "number", bool: "boolean", str: "string"}


@dataclass
class FunctionTool(ToolDef):
    """携带可执行函数的工具定义。"""

    func: Callable[..., Any] = field(repr=False, compare=False, default=None)
    adapters: Dict[str, TypeAdapter] = field(default_factory=dict, repr=False, compare=False)

    def invoke(self, arguments: Dict[str, Any]) -> str:
        kwargs: Dict[str, Any] = {}
        for name, param in self.params.items():
            if name in arguments:
                adapter = self.adapters.get(name)
                value = arguments[name]
                kwargs[name] = adapter.validate_python(value) if adapter else value
            elif param.required:
                raise ValueError(f"missing required argument: {name}")
        return serialize_result(self.func(**kwargs))


def create_tool(
    func: Callable[..., Any],
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> FunctionTool:
    target = inspect.unwrap(getattr(func, "__func__", func))
    hints = get_type_hints(target, include_extras=True)
    params: Dict[str, ToolParam] = {}
    adapters: Dict[str, TypeAdapter] = {}
    for pname, p in inspect.signature(func).parameters.items():
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = hints.get(pname, str)
        base, param_desc = _split_annotated(annotation)
        adapters[pname] = TypeAdapter(base)
        params[pname] = ToolParam(
            name=pname,
            description=param_desc,
            required=p.default is inspect.Parameter.empty,
            schema=_schema_for(base, adapters[pname]),
        )
    return FunctionTool(
        name=name or _snake_case(func.__name__),
        description=description or _first_paragraph(inspect.getdoc(func)),
        params=params,
        func=func,
        adapters=adapters,
    )


def serialize_result(result: Any) -> str:
    """工具返回值转文本：str 原样返回，None 视为执行成功。"""

    if isinstance(result, str):
        return result
    if result is None:
        return "done"
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    if dataclasses.is_dataclass(result) and not isinstance(result, type):
        result = dataclasses.asdict(result)
    return json.dumps(result, ensure_ascii=False, default=str)


def _split_annotated(annotation: Any) -> tuple:
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        desc = next((m for m in metadata if isinstance(m, str)), "")
        return base, desc
    return annotation, ""


def _schema_for(tp: Any, adapter: TypeAdapter) -> Dict[str, Any]:
    if tp in _JSON_TYPES:
        return {"type": _JSON_TYPES[tp]}
    schema = adapter.json_schema()
    schema.pop("title", None)
    return schema


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _first_paragraph(doc: Optional[str]) -> str:
    if not doc:
        return ""
    return doc.strip().split("\n\n", 1)[0].replace("\n", " ").strip()
