import os
import logging

from fastapi import FastAPI

from app.routers.water_analysis import router as water_analysis_router

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Pool Water Dosing Service")
app.include_router(water_analysis_router)


@app.get("/health")
def health():
    return {"status": "ok", "service": "pool-water-dosing"}
