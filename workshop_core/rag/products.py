"""产品与手册分块数据。

数据文件使用 PascalCase 字段名（ProductId、PageNumber 等）。
解析时同样接受 camelCase 与 snake_case 字段名，模型回复常用 camelCase；
序列化统一输出 PascalCase。
"""

from pathlib import Path
from typing import List, Optional, Union

from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict, TypeAdapter
from pydantic.alias_generators import to_camel, to_pascal

from workshop_core.domain.exceptions import ValidationError

PRODUCTS_FILE = "products.json"
MANUAL_CHUNKS_FILE = "manual-chunks.json"


def _field_aliases(name: str) -> AliasChoices:
    return AliasChoices(to_pascal(name), to_camel(name), name)


class PascalModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=_field_aliases, serialization_alias=to_pascal),
        populate_by_name=True,
    )


class Product(PascalModel):
    product_id: int
    brand: str = ""
    model: str = ""
    description: str = ""


class ManualChunk(PascalModel):
    chunk_id: int
    product_id: int
    page_number: int
    text: str


def _load_list(path: Path, item_type):
    if not path.exists():
        raise ValidationError(code="DATA_FILE_MISSING", message=f"Data file not found: {path}", path=str(path))
    return TypeAdapter(List[item_type]).validate_json(path.read_bytes())


def load_products(data_dir: Union[str, Path]) -> List[Product]:
    return _load_list(Path(data_dir) / PRODUCTS_FILE, Product)


def load_manual_chunks(path: Union[str, Path]) -> List[ManualChunk]:
    return _load_list(Path(path), ManualChunk)


def get_current_product(products: List[Product], product_id: Optional[int] = None) -> Product:
    """按 product_id 选择当前产品；未指定时取第一个。"""

    if not products:
        raise ValidationError(code="NO_PRODUCTS", message="Product list is empty")
    if product_id is None:
        return products[0]
    for product in products:
        if product.product_id == product_id:
            return product
    raise ValidationError(code="UNKNOWN_PRODUCT", message=f"Unknown product id: {product_id}", product_id=product_id)
