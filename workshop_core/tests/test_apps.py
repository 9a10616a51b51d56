from workshop_core.apps.chat import ChatSession, build_chat_pipeline, run_console
from workshop_core.apps.quiz import QuizSession, run_quiz
from workshop_core.domain.models import ChatChoice, ChatMessage, ChatResult
from workshop_core.shop import Cart, ECommerceToolServer
from workshop_core.tools.definitions import ToolCall


class SettingsStub:
    reply_language = "French"
    rate_limit_window_seconds = 5.0
    max_tool_rounds = 3


def reply(text="", tool_calls=None):
    msg = ChatMessage(role="assistant", content=text, tool_calls=tool_calls)
    return ChatResult(provider="fake", model="m", choices=[ChatChoice(index=0, message=msg)])


class ScriptedProvider:
    name = "fake"

    def __init__(self, *results):
        self._results = list(results)
        self.requests = []

    def chat(self, req):
        self.requests.append(req)
        return self._results.pop(0)


def test_chat_session_with_tools_and_middleware():
    cart = Cart()
    provider = ScriptedProvider(
        reply(tool_calls=[ToolCall(id="c1", name="add_socks_to_cart", arguments={"num_pairs": 2})]),
        reply("Added! FOOTMONSTER socks are on sale."),
    )
    client = build_chat_pipeline(provider, SettingsStub())
    session = ChatSession(client, tools=ECommerceToolServer(cart).tools())
    answer = session.send("Add two pairs please")
    assert answer == "Added! FOOTMONSTER socks are on sale."
    assert cart.num_pairs_of_socks == 2
    first = provider.requests[0]
    assert first.messages[0].role == "system"
    assert "FOOTMONSTER" in first.messages[0].content
    assert first.messages[-1].content == "Always reply in the language French"
    roles = [m.role for m in session.history.messages]
    assert roles == ["system", "user", "assistant", "tool", "assistant"]
    assert session.history.messages[3].content == "done"


def test_chat_session_reports_cart_errors_to_model():
    provider = ScriptedProvider(
        reply(tool_calls=[ToolCall(id="c1", name="add_socks_to_cart", arguments={"num_pairs": -5})]),
        reply("You can't remove socks you don't have."),
    )
    session = ChatSession(build_chat_pipeline(provider, SettingsStub()), tools=ECommerceToolServer(Cart()).tools())
    session.send("remove five")
    tool_msg = provider.requests[1].messages[-1]
    assert tool_msg.role == "tool"
    assert tool_msg.content == "Error: You cannot order less than 0 pairs of Socks"


def test_run_console_stops_on_blank_line():
    provider = ScriptedProvider(reply("hello there"))
    session = ChatSession(provider, system_prompt="be nice")
    inputs = iter(["hi", ""])
    output = []
    run_console(session, input_fn=lambda _: next(inputs), output_fn=output.append)
    assert output == ["Bot: hello there"]


def test_quiz_flow_and_scoring():
    provider = ScriptedProvider(
        reply("What keyword defines a function?"),
        reply("CORRECT: def is right."),
        reply("What is the type of 1.0?"),
        reply("INCORRECT: it is a float."),
    )
    quiz = QuizSession(provider, subject="Python Language", num_questions=2)
    assert not quiz.can_submit
    assert quiz.submit_answer("early") is None
    assert provider.requests == []

    assert quiz.move_to_next_question() == "What keyword defines a function?"
    assert quiz.can_submit
    assert "Python Language" in provider.requests[0].messages[0].content

    # 未判分前不能跳到下一题
    assert quiz.move_to_next_question() == "What keyword defines a function?"
    assert len(provider.requests) == 1

    assert quiz.submit_answer("<b>def") == "CORRECT: def is right."
    assert "<b>" not in provider.requests[1].messages[0].content
    assert "b>def" in provider.requests[1].messages[0].content
    assert quiz.points_scored == 1

    assert not quiz.can_submit
    # 重复提交不会再次判分
    quiz.submit_answer("def")
    assert len(provider.requests) == 2

    quiz.move_to_next_question()
    assert "What keyword defines a function?" in provider.requests[2].messages[0].content
    quiz.submit_answer("int")
    assert quiz.points_scored == 1
    assert quiz.finished


def test_run_quiz_console():
    provider = ScriptedProvider(reply("Q1?"), reply("CORRECT: yes"))
    quiz = QuizSession(provider, subject="Python Language", num_questions=1)
    output = []
    score = run_quiz(quiz, input_fn=lambda _: "answer", output_fn=output.append)
    assert score == 1
    assert output[-1] == "\nYou scored 1 out of 1"
