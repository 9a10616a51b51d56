from dataclasses import dataclass
from typing import Annotated, List, Optional

import pytest
from pydantic import BaseModel

from workshop_core.tools.definitions import ToolCall
from workshop_core.tools.executor import ToolExecutor
from workshop_core.tools.functions import create_tool, serialize_result


def GetWeather(city: Annotated[str, "City name"], days: int = 1) -> str:
    """Gets the weather forecast.

    Longer explanation that is not part of the description.
    """
    return f"{city}:{days}"


class Point(BaseModel):
    x: int
    y: int


@dataclass
class Pair:
    left: str
    right: str


def test_create_tool_schema():
    tool = create_tool(GetWeather)
    assert tool.name == "get_weather"
    assert tool.description == "Gets the weather forecast."
    schema = tool.parameters_schema()
    assert schema["properties"]["city"] == {"type": "string", "description": "City name"}
    assert schema["properties"]["days"] == {"type": "integer"}
    assert schema["required"] == ["city"]


def test_create_tool_overrides_and_complex_types():
    def plot(points: List[int], label: Optional[str] = None) -> None:
        pass

    tool = create_tool(plot, name="draw", description="Draws points")
    assert (tool.name, tool.description) == ("draw", "Draws points")
    assert tool.params["points"].schema["type"] == "array"
    assert tool.params["label"].required is False


def test_invoke_coerces_and_validates_arguments():
    tool = create_tool(GetWeather)
    assert tool.invoke({"city": "Lyon", "days": "3"}) == "Lyon:3"
    with pytest.raises(ValueError):
        tool.invoke({"days": 2})


def test_serialize_result_variants():
    assert serialize_result("text") == "text"
    assert serialize_result(None) == "done"
    assert serialize_result(15.99) == "15.99"
    assert serialize_result({"a": 1}) == '{"a": 1}'
    assert serialize_result(Point(x=1, y=2)) == '{"x":1,"y":2}'
    assert serialize_result(Pair("a", "b")) == '{"left": "a", "right": "b"}'


def test_executor_dispatches_by_name():
    te = ToolExecutor([create_tool(GetWeather)])
    assert te.tool_names == ["get_weather"]
    rc = te.execute(ToolCall(id="1", name="get_weather", arguments={"city": "Rome"}))
    assert rc.call_id == "1"
    assert rc.content == "Rome:1"
    missing = te.execute(ToolCall(id="2", name="nope", arguments={}))
    assert missing.content == "Tool not registered: nope"
