from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import modeller, semalar, veritabani, disa_aktarim
from ..api_servisler import PanoServisi, sonraki_makbuz_no
from ..api_yardimcilar import (
    aktif_kullanici_adi, _get_or_404, _jsonlanabilir,
    denetim_kaydi_olustur, degisiklikleri_kaydet, liste_yaniti
)
from ..bicim import format_currency
from ..liste import SiralamaOlcutu
from ..modeller import DenetimEylemi, DenetimVarlikTuru

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bagislar", tags=["Bağışlar"])

MAKBUZ_NO_MESAJI = "Bu makbuz numarası başka bir bağışta kullanılıyor."
ARAMA_ALANLARI = ["bagisci_adi", "makbuz_no", "aciklama", "proje_adi"]
SIRALANABILIR = ["id", "tarih", "tutar", "bagisci_adi", "bagis_turu", "makbuz_no", "proje_adi"]


def _referans_kontrol(db: Session, bagisci_id: Optional[int], proje_id: Optional[int]):
    if bagisci_id is not None:
        _get_or_404(db, modeller.Kisi, bagisci_id, "Bağışçı")
    if proje_id is not None:
        _get_or_404(db, modeller.Proje, proje_id, "Proje")


@router.post("/", response_model=semalar.BagisRead, status_code=status.HTTP_201_CREATED)
def create_bagis(
    bagis: semalar.BagisCreate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    _referans_kontrol(db, bagis.bagisci_id, bagis.proje_id)

    veri = bagis.model_dump(exclude_unset=True)
    veri["tarih"] = veri.get("tarih") or date.today()
    if not veri.get("makbuz_no"):
        veri["makbuz_no"] = sonraki_makbuz_no(db, veri["tarih"].year)

    db_bagis = modeller.Bagis(**veri)
    db.add(db_bagis)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MAKBUZ_NO_MESAJI)

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.OLUSTURMA, DenetimVarlikTuru.BAGIS,
        f"{db_bagis.bagisci_adi} adına {format_currency(db_bagis.tutar, db_bagis.para_birimi)} bağış kaydedildi.",
        entity_id=db_bagis.id, detaylar={"makbuz_no": db_bagis.makbuz_no}
    )
    degisiklikleri_kaydet(db, "Bağış kaydedilirken hata", MAKBUZ_NO_MESAJI)
    db.refresh(db_bagis)
    logger.info(f"Bağış kaydedildi: #{db_bagis.id} ({db_bagis.makbuz_no})")
    return db_bagis


@router.get("/", response_model=semalar.BagisListResponse)
def read_bagislar(
    arama: Optional[str] = None,
    bagis_turu: Optional[modeller.BagisTuru] = None,
    proje_id: Optional[int] = None,
    bagisci_id: Optional[int] = None,
    baslangic: Optional[date] = Query(None, description="YYYY-MM-DD"),
    bitis: Optional[date] = Query(None, description="YYYY-MM-DD"),
    siralama: Optional[str] = Query(None, description="Örn: -tarih,tutar"),
    sayfa: int = 1,
    sayfa_boyutu: int = 25,
    db: Session = Depends(veritabani.get_db)
):
    query = db.query(modeller.Bagis)
    if bagis_turu:
        query = query.filter(modeller.Bagis.bagis_turu == bagis_turu)
    if proje_id:
        query = query.filter(modeller.Bagis.proje_id == proje_id)
    if bagisci_id:
        query = query.filter(modeller.Bagis.bagisci_id == bagisci_id)
    if baslangic:
        query = query.filter(modeller.Bagis.tarih >= baslangic)
    if bitis:
        query = query.filter(modeller.Bagis.tarih <= bitis)

    return liste_yaniti(
        query.all(), semalar.BagisRead, arama, ARAMA_ALANLARI, siralama, SIRALANABILIR, sayfa, sayfa_boyutu,
        varsayilan_siralama=[SiralamaOlcutu("tarih", "desc"), SiralamaOlcutu("id", "desc")]
    )


@router.get("/istatistikler", response_model=semalar.BagisIstatistikleri)
def get_bagis_istatistikleri(db: Session = Depends(veritabani.get_db)):
    return PanoServisi(db).bagis_istatistikleri()


@router.get("/sonraki-makbuz-no", response_model=semalar.NextCodeResponse)
def get_sonraki_makbuz_no(db: Session = Depends(veritabani.get_db)):
    return {"next_code": sonraki_makbuz_no(db)}


@router.get("/{bagis_id}", response_model=semalar.BagisRead)
def read_bagis(bagis_id: int, db: Session = Depends(veritabani.get_db)):
    return _get_or_404(db, modeller.Bagis, bagis_id, "Bağış")


@router.get("/{bagis_id}/makbuz")
def get_bagis_makbuzu(bagis_id: int, db: Session = Depends(veritabani.get_db)):
    db_bagis = _get_or_404(db, modeller.Bagis, bagis_id, "Bağış")
    try:
        icerik = disa_aktarim.bagis_makbuzu_pdf(db_bagis)
    except Exception as e:
        logger.error(f"Makbuz PDF oluşturulurken hata: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Makbuz oluşturulurken beklenmedik bir hata oluştu: {e}")
    return Response(
        content=icerik,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="makbuz_{db_bagis.makbuz_no}.pdf"'}
    )


@router.put("/{bagis_id}", response_model=semalar.BagisRead)
def update_bagis(
    bagis_id: int,
    bagis_update: semalar.BagisUpdate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_bagis = _get_or_404(db, modeller.Bagis, bagis_id, "Bağış")
    update_data = bagis_update.model_dump(exclude_unset=True)
    _referans_kontrol(db, update_data.get("bagisci_id"), update_data.get("proje_id"))

    for key, value in update_data.items():
        setattr(db_bagis, key, value)

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.GUNCELLEME, DenetimVarlikTuru.BAGIS,
        f"Bağış güncellendi: {db_bagis.makbuz_no}", entity_id=db_bagis.id, detaylar=_jsonlanabilir(update_data)
    )
    degisiklikleri_kaydet(db, "Bağış güncellenirken hata")
    db.refresh(db_bagis)
    return db_bagis


@router.delete("/{bagis_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bagis(
    bagis_id: int,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_bagis = _get_or_404(db, modeller.Bagis, bagis_id, "Bağış")
    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.SILME, DenetimVarlikTuru.BAGIS,
        f"Bağış silindi: {db_bagis.makbuz_no}", entity_id=db_bagis.id,
        detaylar={"tutar": db_bagis.tutar, "bagisci_id": db_bagis.bagisci_id}
    )
    db.delete(db_bagis)
    degisiklikleri_kaydet(db, "Bağış silinirken hata")
    return
