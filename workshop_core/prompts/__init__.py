"""提示词模板加载工具。

模板按语言(locale) 存放在 prompts/<locale>/<name>.md，
占位符使用 $name 语法（string.Template），避免与模板中的 JSON 花括号冲突。
"""

from pathlib import Path
from string import Template


PROMPTS_DIR = Path(__file__).resolve().parent


def load_prompt(name: str, locale: str = "en") -> str:
    """读取原始模板文本（去掉末尾换行）。"""

    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8").rstrip("\n")


def render_prompt(name: str, locale: str = "en", **values) -> str:
    """读取模板并填充占位符，缺少占位符对应的值时抛出 KeyError。"""

    return Template(load_prompt(name, locale)).substitute(**values)
