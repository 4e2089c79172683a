from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from .. import modeller, veritabani

router = APIRouter(prefix="/sistem", tags=["Sistem"])

# Form seçim kutularında kullanılan enumlar
SECENEK_ENUMLARI = {
    "basvuru_durumlari": modeller.BasvuruDurumu,
    "basvuru_asamalari": modeller.BasvuruAsamasi,
    "basvuru_oncelikleri": modeller.BasvuruOnceligi,
    "yardim_turleri": modeller.YardimTuru,
    "bagis_turleri": modeller.BagisTuru,
    "para_birimleri": modeller.ParaBirimi,
    "proje_durumlari": modeller.ProjeDurumu,
    "gorev_durumlari": modeller.GorevDurumu,
    "gorev_oncelikleri": modeller.GorevOnceligi,
    "odeme_turleri": modeller.OdemeTuru,
    "odeme_durumlari": modeller.OdemeDurumu,
    "odeme_yontemleri": modeller.OdemeYontemi,
    "kisi_durumlari": modeller.KisiDurumu,
    "uyelik_turleri": modeller.UyelikTuru,
    "denetim_eylemleri": modeller.DenetimEylemi,
    "varlik_turleri": modeller.DenetimVarlikTuru,
}


# HEALTH CHECK ROTASI
@router.get("/status", response_model=dict)
def get_sistem_status(db: Session = Depends(veritabani.get_db)):
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected"}
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Veritabanı bağlantısı kurulamadı! Hata: {e}"
        )


@router.get("/secenekler", response_model=Dict[str, List[str]])
def get_secenekler():
    return {ad: [uye.value for uye in enum_sinifi] for ad, enum_sinifi in SECENEK_ENUMLARI.items()}
