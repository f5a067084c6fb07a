import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from withdrawal_gate.app.routes.withdrawals import router as withdrawals_router
from withdrawal_gate.config import load_gate_config

load_dotenv()

GATE_CONFIG = load_gate_config()

logging.basicConfig(
    level=getattr(logging, GATE_CONFIG.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("withdrawal_gate")

app = FastAPI(title="Withdrawal Gate")
app.include_router(withdrawals_router)


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.on_event("startup")
def _log_startup() -> None:
    logger.info(
        "Withdrawal gate starting rule=%s storage=%s atomic=%s proxies=%d",
        GATE_CONFIG.entitlement_rule,
        GATE_CONFIG.storage_backend,
        GATE_CONFIG.atomic_authorization,
        len(GATE_CONFIG.recognized_proxies),
    )
