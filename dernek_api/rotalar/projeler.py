from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import modeller, semalar, veritabani
from ..api_yardimcilar import (
    aktif_kullanici_adi, _get_or_404, _versiyon_kontrol, _jsonlanabilir,
    denetim_kaydi_olustur, degisiklikleri_kaydet, liste_yaniti
)
from ..liste import SiralamaOlcutu
from ..modeller import DenetimEylemi, DenetimVarlikTuru

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projeler", tags=["Projeler"])

ARAMA_ALANLARI = ["ad", "yonetici", "aciklama"]
SIRALANABILIR = ["id", "ad", "durum", "baslangic_tarihi", "bitis_tarihi", "butce", "harcanan", "ilerleme"]


def _sorumlu_kontrol(db: Session, sorumlu_id: Optional[int]):
    if sorumlu_id is not None:
        _get_or_404(db, modeller.Kisi, sorumlu_id, "Sorumlu kişi")


def _proje_gorevi(db: Session, proje_id: int, gorev_id: int) -> modeller.Gorev:
    gorev = db.query(modeller.Gorev).filter(
        modeller.Gorev.id == gorev_id,
        modeller.Gorev.proje_id == proje_id
    ).first()
    if not gorev:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Görev bulunamadı")
    return gorev


@router.post("/", response_model=semalar.ProjeRead, status_code=status.HTTP_201_CREATED)
def create_proje(
    proje: semalar.ProjeCreate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_proje = modeller.Proje(**proje.model_dump(exclude_unset=True), version=0)
    db.add(db_proje)
    db.flush()
    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.OLUSTURMA, DenetimVarlikTuru.PROJE,
        f"Proje oluşturuldu: {db_proje.ad}", entity_id=db_proje.id
    )
    degisiklikleri_kaydet(db, "Proje oluşturulurken hata")
    db.refresh(db_proje)
    logger.info(f"Proje oluşturuldu: #{db_proje.id} {db_proje.ad}")
    return db_proje


@router.get("/", response_model=semalar.ProjeListResponse)
def read_projeler(
    arama: Optional[str] = None,
    durum: Optional[modeller.ProjeDurumu] = None,
    yonetici: Optional[str] = None,
    siralama: Optional[str] = Query(None, description="Örn: -baslangic_tarihi"),
    sayfa: int = 1,
    sayfa_boyutu: int = 25,
    db: Session = Depends(veritabani.get_db)
):
    query = db.query(modeller.Proje)
    if durum:
        query = query.filter(modeller.Proje.durum == durum)
    if yonetici:
        query = query.filter(modeller.Proje.yonetici == yonetici)

    return liste_yaniti(
        query.all(), semalar.ProjeRead, arama, ARAMA_ALANLARI, siralama, SIRALANABILIR, sayfa, sayfa_boyutu,
        varsayilan_siralama=[SiralamaOlcutu("id", "desc")]
    )


@router.get("/{proje_id}", response_model=semalar.ProjeRead)
def read_proje(proje_id: int, db: Session = Depends(veritabani.get_db)):
    return _get_or_404(db, modeller.Proje, proje_id, "Proje")


@router.put("/{proje_id}", response_model=semalar.ProjeRead)
def update_proje(
    proje_id: int,
    proje_update: semalar.ProjeUpdate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_proje = _get_or_404(db, modeller.Proje, proje_id, "Proje")
    _versiyon_kontrol(db_proje, proje_update.version)

    update_data = proje_update.model_dump(exclude_unset=True, exclude={"version"})
    baslangic = update_data.get("baslangic_tarihi", db_proje.baslangic_tarihi)
    bitis = update_data.get("bitis_tarihi", db_proje.bitis_tarihi)
    if baslangic and bitis and bitis < baslangic:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bitiş tarihi başlangıç tarihinden önce olamaz.")

    for key, value in update_data.items():
        setattr(db_proje, key, value)
    db_proje.version += 1

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.GUNCELLEME, DenetimVarlikTuru.PROJE,
        f"Proje güncellendi: {db_proje.ad}", entity_id=db_proje.id, detaylar=_jsonlanabilir(update_data)
    )
    degisiklikleri_kaydet(db, "Proje güncellenirken hata")
    db.refresh(db_proje)
    return db_proje


@router.delete("/{proje_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_proje(
    proje_id: int,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_proje = _get_or_404(db, modeller.Proje, proje_id, "Proje")
    if db_proje.bagislar:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Bu projeye bağlı bağışlar olduğu için proje silinemez."
        )

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.SILME, DenetimVarlikTuru.PROJE,
        f"Proje silindi: {db_proje.ad}", entity_id=db_proje.id
    )
    db.delete(db_proje)
    degisiklikleri_kaydet(db, "Proje silinirken hata")
    return


# --- PROJE GÖREVLERİ ---
@router.post("/{proje_id}/gorevler", response_model=semalar.GorevRead, status_code=status.HTTP_201_CREATED)
def create_gorev(
    proje_id: int,
    gorev: semalar.GorevCreate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_proje = _get_or_404(db, modeller.Proje, proje_id, "Proje")
    _sorumlu_kontrol(db, gorev.sorumlu_id)

    db_gorev = modeller.Gorev(**gorev.model_dump(exclude_unset=True), proje_id=db_proje.id)
    db.add(db_gorev)
    db.flush()
    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.GUNCELLEME, DenetimVarlikTuru.PROJE,
        f"{db_proje.ad} projesine görev eklendi: {db_gorev.baslik}", entity_id=db_proje.id,
        detaylar={"gorev_id": db_gorev.id}
    )
    degisiklikleri_kaydet(db, "Görev eklenirken hata")
    db.refresh(db_gorev)
    return db_gorev


@router.put("/{proje_id}/gorevler/{gorev_id}", response_model=semalar.GorevRead)
def update_gorev(
    proje_id: int,
    gorev_id: int,
    gorev_update: semalar.GorevUpdate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_gorev = _proje_gorevi(db, proje_id, gorev_id)
    update_data = gorev_update.model_dump(exclude_unset=True)
    if "sorumlu_id" in update_data:
        _sorumlu_kontrol(db, update_data["sorumlu_id"])

    for key, value in update_data.items():
        setattr(db_gorev, key, value)

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.GUNCELLEME, DenetimVarlikTuru.PROJE,
        f"Görev güncellendi: {db_gorev.baslik}", entity_id=proje_id,
        detaylar={"gorev_id": db_gorev.id, **_jsonlanabilir(update_data)}
    )
    degisiklikleri_kaydet(db, "Görev güncellenirken hata")
    db.refresh(db_gorev)
    return db_gorev


@router.delete("/{proje_id}/gorevler/{gorev_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_gorev(
    proje_id: int,
    gorev_id: int,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_gorev = _proje_gorevi(db, proje_id, gorev_id)
    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.GUNCELLEME, DenetimVarlikTuru.PROJE,
        f"Görev silindi: {db_gorev.baslik}", entity_id=proje_id, detaylar={"gorev_id": db_gorev.id}
    )
    db.delete(db_gorev)
    degisiklikleri_kaydet(db, "Görev silinirken hata")
    return
