import pytest
from pathlib import Path
from fastapi.testclient import TestClient

from codoc.service.app import app, init_service, state
from codoc.service.security import get_security_config

CART_TS = """\
// @summary(CLOUD-123) Cart cache
//  - why: offline access
//  - domain: cart,storage
// @endSummary
export function loadCart() {
  return cache.get("cart");
}
"""

PAYMENT_JAVA = """\
/**
 * @decision Use REST instead of gRPC
 * - req: CLOUD-123, CLOUD-166
 * - why: existing gateway only speaks HTTP
 * - domain: payment
 * @endDecision
 */
public class Payment {
}
"""

CART_GO = """\
package cart

// @fix(BUG-7) Nil map on empty cart
// - how: initialise before use
// @endFix
func (c *Cart) Add() {}
"""

MISC_TS = """\
// @comment Loose note
// - why: nobody owns this yet
// @endComment
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CODOC_REQ_URL", "CODOC_BUG_URL", "CODOC_WORKERS", "CODOC_CACHE_DIR",
                 "CODOC_ROOT", "CODOC_TOKEN", "CODOC_HOST", "CODOC_PORT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    src = root / "src"
    src.mkdir(parents=True)
    (src / "cart.ts").write_text(CART_TS, encoding="utf-8")
    (src / "Payment.java").write_text(PAYMENT_JAVA, encoding="utf-8")
    (src / "cart.go").write_text(CART_GO, encoding="utf-8")
    (src / "misc.ts").write_text(MISC_TS, encoding="utf-8")
    (root / "README.md").write_text("// @comment Not code\n// @endComment\n", encoding="utf-8")

    vendored = root / "node_modules" / "lib"
    vendored.mkdir(parents=True)
    (vendored / "index.js").write_text("// @comment Vendored\n// @endComment\n", encoding="utf-8")
    return root


@pytest.fixture
def service_client(project: Path):
    token = "test-token-123"
    init_service(project, token=token)

    class Context:
        def __init__(self):
            self.client = TestClient(app)
            self.headers = {"Authorization": f"Bearer {token}"}
            self.workspace = state.workspace
            self.root = project

    yield Context()

    state.workspace = None
    get_security_config().set_token(None)
