"""练习数据加载：GitHub issue 标题与文档标题。"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from workshop_core.domain.exceptions import ValidationError


@dataclass(frozen=True)
class GitHubIssue:
    number: int
    title: str


def _read_json(path: Union[str, Path]):
    path = Path(path)
    if not path.exists():
        raise ValidationError(code="DATA_FILE_MISSING", message=f"Data file not found: {path}", path=str(path))
    return json.loads(path.read_text(encoding="utf-8"))


def load_github_issues(path: Union[str, Path], take_last: Optional[int] = None) -> List[GitHubIssue]:
    """读取 [{"number": 1, "title": "..."}] 格式的 issue 列表，可只取最后 take_last 条。"""

    issues = [GitHubIssue(number=int(item["number"]), title=str(item["title"])) for item in _read_json(path)]
    if take_last is not None:
        issues = issues[-take_last:] if take_last > 0 else []
    return issues


def load_document_titles(path: Union[str, Path]) -> List[str]:
    """文档标题既可以是列表，也可以是 {id: title} 映射（按文件中的顺序取值）。"""

    data = _read_json(path)
    if isinstance(data, dict):
        return [str(v) for v in data.values()]
    return [str(v) for v in data]
