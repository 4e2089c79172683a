from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import modeller, semalar, veritabani
from ..api_yardimcilar import liste_yaniti
from ..liste import SiralamaOlcutu

router = APIRouter(prefix="/denetim-kayitlari", tags=["Denetim Kayıtları"])

ARAMA_ALANLARI = ["aciklama", "kullanici_adi"]
SIRALANABILIR = ["id", "zaman", "kullanici_adi", "eylem", "entity_tipi"]


@router.get("/", response_model=semalar.DenetimKaydiListResponse)
def read_denetim_kayitlari(
    arama: Optional[str] = None,
    eylem: Optional[modeller.DenetimEylemi] = None,
    entity_tipi: Optional[modeller.DenetimVarlikTuru] = None,
    entity_id: Optional[int] = None,
    kullanici_adi: Optional[str] = None,
    baslangic: Optional[date] = Query(None, description="YYYY-MM-DD"),
    bitis: Optional[date] = Query(None, description="YYYY-MM-DD"),
    siralama: Optional[str] = Query(None, description="Örn: -zaman"),
    sayfa: int = 1,
    sayfa_boyutu: int = 50,
    db: Session = Depends(veritabani.get_db)
):
    query = db.query(modeller.DenetimKaydi)
    if eylem:
        query = query.filter(modeller.DenetimKaydi.eylem == eylem)
    if entity_tipi:
        query = query.filter(modeller.DenetimKaydi.entity_tipi == entity_tipi)
    if entity_id is not None:
        query = query.filter(modeller.DenetimKaydi.entity_id == entity_id)
    if kullanici_adi:
        query = query.filter(modeller.DenetimKaydi.kullanici_adi == kullanici_adi)
    if baslangic:
        query = query.filter(modeller.DenetimKaydi.zaman >= datetime.combine(baslangic, time.min))
    if bitis:
        query = query.filter(modeller.DenetimKaydi.zaman <= datetime.combine(bitis, time.max))

    return liste_yaniti(
        query.all(), semalar.DenetimKaydiRead, arama, ARAMA_ALANLARI, siralama, SIRALANABILIR, sayfa, sayfa_boyutu,
        varsayilan_siralama=[SiralamaOlcutu("zaman", "desc"), SiralamaOlcutu("id", "desc")]
    )
