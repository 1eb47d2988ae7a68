import sys
from pathlib import Path
import os

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENV", "dev")
os.environ.setdefault("SLOT_CONFIG_BACKEND", "memory")
os.environ.setdefault("SLOT_RENDER_CACHE", "1")

from storefront_engines.ab_variants.cache import MergedTreeCache, set_merged_tree_cache  # noqa: E402
from storefront_engines.ab_variants.repository import InMemoryVariantProvider, set_variant_provider  # noqa: E402
from storefront_engines.logging.audit import set_audit_sink  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_process_state():
    set_variant_provider(InMemoryVariantProvider())
    set_merged_tree_cache(MergedTreeCache())
    yield
    set_audit_sink(None)
