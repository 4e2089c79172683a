from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import modeller, semalar, veritabani
from ..api_yardimcilar import (
    aktif_kullanici_adi, _get_or_404, _jsonlanabilir,
    denetim_kaydi_olustur, degisiklikleri_kaydet, liste_yaniti
)
from ..bicim import format_currency
from ..liste import SiralamaOlcutu
from ..modeller import DenetimEylemi, DenetimVarlikTuru

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/odemeler", tags=["Ödemeler"])

ARAMA_ALANLARI = ["kisi", "aciklama"]
SIRALANABILIR = ["id", "odeme_tarihi", "tutar", "kisi", "odeme_turu", "durum"]


def _basvuruya_bagli_mi(db: Session, odeme_id: int) -> bool:
    return db.query(modeller.YardimBasvurusu.id).filter(modeller.YardimBasvurusu.odeme_id == odeme_id).first() is not None


@router.post("/", response_model=semalar.OdemeRead, status_code=status.HTTP_201_CREATED)
def create_odeme(
    odeme: semalar.OdemeCreate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    veri = odeme.model_dump(exclude_unset=True)
    veri["odeme_tarihi"] = veri.get("odeme_tarihi") or date.today()
    db_odeme = modeller.Odeme(**veri)
    db.add(db_odeme)
    db.flush()
    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.OLUSTURMA, DenetimVarlikTuru.ODEME,
        f"{db_odeme.kisi} için {format_currency(db_odeme.tutar, db_odeme.para_birimi)} tutarında "
        f"{db_odeme.odeme_turu.value} kaydedildi.",
        entity_id=db_odeme.id
    )
    degisiklikleri_kaydet(db, "Ödeme kaydedilirken hata")
    db.refresh(db_odeme)
    return db_odeme


@router.get("/", response_model=semalar.OdemeListResponse)
def read_odemeler(
    arama: Optional[str] = None,
    odeme_turu: Optional[modeller.OdemeTuru] = None,
    durum: Optional[modeller.OdemeDurumu] = None,
    odeme_yontemi: Optional[modeller.OdemeYontemi] = None,
    siralama: Optional[str] = Query(None, description="Örn: -odeme_tarihi"),
    sayfa: int = 1,
    sayfa_boyutu: int = 25,
    db: Session = Depends(veritabani.get_db)
):
    query = db.query(modeller.Odeme)
    if odeme_turu:
        query = query.filter(modeller.Odeme.odeme_turu == odeme_turu)
    if durum:
        query = query.filter(modeller.Odeme.durum == durum)
    if odeme_yontemi:
        query = query.filter(modeller.Odeme.odeme_yontemi == odeme_yontemi)

    return liste_yaniti(
        query.all(), semalar.OdemeRead, arama, ARAMA_ALANLARI, siralama, SIRALANABILIR, sayfa, sayfa_boyutu,
        varsayilan_siralama=[SiralamaOlcutu("odeme_tarihi", "desc"), SiralamaOlcutu("id", "desc")]
    )


@router.get("/{odeme_id}", response_model=semalar.OdemeRead)
def read_odeme(odeme_id: int, db: Session = Depends(veritabani.get_db)):
    return _get_or_404(db, modeller.Odeme, odeme_id, "Ödeme")


@router.put("/{odeme_id}", response_model=semalar.OdemeRead)
def update_odeme(
    odeme_id: int,
    odeme_update: semalar.OdemeUpdate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_odeme = _get_or_404(db, modeller.Odeme, odeme_id, "Ödeme")
    update_data = odeme_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_odeme, key, value)

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.GUNCELLEME, DenetimVarlikTuru.ODEME,
        f"Ödeme #{db_odeme.id} güncellendi.", entity_id=db_odeme.id, detaylar=_jsonlanabilir(update_data)
    )
    degisiklikleri_kaydet(db, "Ödeme güncellenirken hata")
    db.refresh(db_odeme)
    return db_odeme


@router.delete("/{odeme_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_odeme(
    odeme_id: int,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_odeme = _get_or_404(db, modeller.Odeme, odeme_id, "Ödeme")
    if _basvuruya_bagli_mi(db, odeme_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Bu ödeme bir yardım başvurusuna bağlı olduğu için silinemez."
        )

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.SILME, DenetimVarlikTuru.ODEME,
        f"Ödeme #{db_odeme.id} silindi.", entity_id=db_odeme.id,
        detaylar={"kisi": db_odeme.kisi, "tutar": db_odeme.tutar}
    )
    db.delete(db_odeme)
    degisiklikleri_kaydet(db, "Ödeme silinirken hata")
    return
