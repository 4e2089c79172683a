from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from . import veritabani
from .config import settings
from .rotalar import (
    kisiler, projeler, bagislar, odemeler, yardim_basvurulari,
    raporlar, arama, denetim, sistem
)

# Loglama ayarları
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Uygulama başlangıç ve kapanışında çalışacak kod.
    Tabloların varlığını kontrol eder, yoksa oluşturur.
    """
    logger.info("API başlatılıyor...")
    try:
        veritabani.tablolari_olustur()
    except SQLAlchemyError as e:
        logger.error(f"Veritabanı şeması oluşturulurken hata oluştu: {e}", exc_info=True)
        raise
    yield
    logger.info("API kapanıyor...")


app = FastAPI(
    lifespan=lifespan,
    title="Dernek Yönetim Paneli API",
    description="Bağış, yardım başvurusu, kişi, proje ve ödeme yönetimi için RESTful API",
    version="1.0.0",
)

# CORS ayarları
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router'ları (rotaları) uygulamaya dahil etme
app.include_router(kisiler.router)
app.include_router(projeler.router)
app.include_router(bagislar.router)
app.include_router(odemeler.router)
app.include_router(yardim_basvurulari.router)
app.include_router(raporlar.router)
app.include_router(arama.router)
app.include_router(denetim.router)
app.include_router(sistem.router)


@app.get("/")
def read_root():
    return {"message": "Dernek Yönetim Paneli API'sine hoş geldiniz!"}
