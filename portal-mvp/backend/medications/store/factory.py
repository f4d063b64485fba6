"""
工厂函数：根据 settings.MEDICATION_STORE 返回对应的 row store 实例。

新增 store 只需：
  1. 新建 XxxMedicationStore(BaseMedicationStore) 类
  2. 在 _build_registry() 加一行
  manager 和 views 零改动。
"""

from django.conf import settings

from .base import BaseMedicationStore


def _build_registry() -> dict[str, type[BaseMedicationStore]]:
    # 延迟导入：rest store 会读 settings 并建 requests.Session
    from .orm import DjangoMedicationStore
    from .rest import RestMedicationStore

    return {
        "orm":  DjangoMedicationStore,
        "rest": RestMedicationStore,
    }


def get_medication_store() -> BaseMedicationStore:
    """
    settings.MEDICATION_STORE 由环境变量 MEDICATION_STORE 控制（默认 "orm"）。

    Raises:
        ValueError: MEDICATION_STORE 未知
    """
    name = getattr(settings, "MEDICATION_STORE", "orm")
    registry = _build_registry()
    store_cls = registry.get(name)

    if store_cls is None:
        raise ValueError(
            f"Unknown MEDICATION_STORE: {name!r}. "
            f"Known stores: {list(registry.keys())}"
        )

    return store_cls()
