from typing import Optional
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import akilli_arama, semalar, veritabani
from ..api_yardimcilar import aktif_kullanici_adi, denetim_kaydi_olustur, degisiklikleri_kaydet
from ..modeller import DenetimEylemi, DenetimVarlikTuru

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/arama", tags=["Akıllı Arama"])


@router.post("/akilli", response_model=semalar.AkilliAramaSonucu)
def akilli_arama_yap(
    istek: semalar.AkilliAramaIstegi,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    """Serbest metin sorguyu panelde açılacak sayfa ve filtrelere çevirir."""
    sonuc = akilli_arama.gezinme_sorgusu(istek.sorgu)

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.AKILLI_ARAMA, DenetimVarlikTuru.SISTEM,
        f"Akıllı arama: {istek.sorgu}",
        detaylar={"path": sonuc["path"], "filters": sonuc["filters"]}
    )
    degisiklikleri_kaydet(db, "Akıllı arama kaydı yazılırken hata")
    logger.info(f"Akıllı arama '{istek.sorgu}' -> {akilli_arama.yonlendirme_url(sonuc)}")
    return sonuc


@router.get("/oneriler", response_model=semalar.OneriListesi)
def get_oneriler(q: Optional[str] = None, limit: int = 8):
    return {"items": akilli_arama.oneriler(q, max(1, limit))}
