from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import modeller, semalar, veritabani
from ..api_servisler import BasvuruIsAkisi, IsAkisiHatasi
from ..api_yardimcilar import (
    aktif_kullanici_adi, _get_or_404, _versiyon_kontrol, is_akisi_hatasini_cevir, liste_yaniti
)
from ..liste import SiralamaOlcutu

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/yardim-basvurulari", tags=["Yardım Başvuruları"])

ARAMA_ALANLARI = ["basvuru_sahibi_adi", "talep_detayi", "degerlendirme_notu"]
SIRALANABILIR = ["id", "basvuru_tarihi", "talep_tutari", "oncelik", "durum", "basvuru_sahibi_adi", "basvuru_turu"]


def _is_akisi(db: Session, kullanici_adi: str) -> BasvuruIsAkisi:
    return BasvuruIsAkisi(db, kullanici_adi)


def _basvuru(db: Session, basvuru_id: int) -> modeller.YardimBasvurusu:
    return _get_or_404(db, modeller.YardimBasvurusu, basvuru_id, "Yardım başvurusu")


def _calistir(islem, hata_mesaji: str):
    """İş akışı adımını çalıştırır, kural ve veritabanı hatalarını HTTP yanıtına çevirir."""
    try:
        return islem()
    except IsAkisiHatasi as e:
        raise is_akisi_hatasini_cevir(e)
    except SQLAlchemyError as e:
        logger.error(f"{hata_mesaji}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"{hata_mesaji}.")


@router.post("/", response_model=semalar.YardimBasvurusuRead, status_code=status.HTTP_201_CREATED)
def create_basvuru(
    basvuru: semalar.YardimBasvurusuCreate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    is_akisi = _is_akisi(db, kullanici_adi)
    return _calistir(lambda: is_akisi.olustur(basvuru.model_dump()), "Başvuru oluşturulurken hata")


@router.get("/", response_model=semalar.YardimBasvurusuListResponse)
def read_basvurular(
    arama: Optional[str] = None,
    durum: Optional[modeller.BasvuruDurumu] = None,
    basvuru_turu: Optional[modeller.YardimTuru] = None,
    oncelik: Optional[modeller.BasvuruOnceligi] = None,
    basvuru_sahibi_id: Optional[int] = None,
    asama: Optional[modeller.BasvuruAsamasi] = None,
    siralama: Optional[str] = Query(None, description="Örn: -basvuru_tarihi"),
    sayfa: int = 1,
    sayfa_boyutu: int = 25,
    db: Session = Depends(veritabani.get_db)
):
    query = db.query(modeller.YardimBasvurusu)
    if durum:
        query = query.filter(modeller.YardimBasvurusu.durum == durum)
    if basvuru_turu:
        query = query.filter(modeller.YardimBasvurusu.basvuru_turu == basvuru_turu)
    if oncelik:
        query = query.filter(modeller.YardimBasvurusu.oncelik == oncelik)
    if basvuru_sahibi_id:
        query = query.filter(modeller.YardimBasvurusu.basvuru_sahibi_id == basvuru_sahibi_id)

    # aşama türetilmiş bir alan olduğu için bellekte süzülür
    return liste_yaniti(
        query.all(), semalar.YardimBasvurusuRead, arama, ARAMA_ALANLARI, siralama, SIRALANABILIR, sayfa, sayfa_boyutu,
        varsayilan_siralama=[SiralamaOlcutu("basvuru_tarihi", "desc"), SiralamaOlcutu("id", "desc")],
        predicate=(lambda b: b.asama == asama) if asama else None
    )


@router.get("/baskan-onayi-bekleyenler", response_model=List[semalar.YardimBasvurusuRead])
def read_baskan_onay_kuyrugu(db: Session = Depends(veritabani.get_db)):
    return BasvuruIsAkisi(db, "").baskan_onay_kuyrugu()


@router.get("/{basvuru_id}", response_model=semalar.YardimBasvurusuDetay)
def read_basvuru(basvuru_id: int, db: Session = Depends(veritabani.get_db)):
    db_basvuru = _basvuru(db, basvuru_id)
    detay = semalar.YardimBasvurusuDetay.model_validate(db_basvuru, from_attributes=True)
    detay.yorumlar = [
        semalar.YorumRead.model_validate(y, from_attributes=True)
        for y in BasvuruIsAkisi(db, "").yorumlar(db_basvuru)
    ]
    return detay


@router.put("/{basvuru_id}", response_model=semalar.YardimBasvurusuRead)
def update_basvuru(
    basvuru_id: int,
    basvuru_update: semalar.YardimBasvurusuUpdate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_basvuru = _basvuru(db, basvuru_id)
    _versiyon_kontrol(db_basvuru, basvuru_update.version)
    degisiklikler = basvuru_update.model_dump(exclude_unset=True, exclude={"version"})
    is_akisi = _is_akisi(db, kullanici_adi)
    return _calistir(lambda: is_akisi.guncelle(db_basvuru, degisiklikler), "Başvuru güncellenirken hata")


@router.delete("/{basvuru_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_basvuru(
    basvuru_id: int,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_basvuru = _basvuru(db, basvuru_id)
    is_akisi = _is_akisi(db, kullanici_adi)
    _calistir(lambda: is_akisi.sil(db_basvuru), "Başvuru silinirken hata")
    return


# --- İŞ AKIŞI ---
@router.post("/{basvuru_id}/degerlendir", response_model=semalar.YardimBasvurusuRead)
def degerlendir_basvuru(
    basvuru_id: int,
    istek: semalar.DegerlendirmeIstegi,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_basvuru = _basvuru(db, basvuru_id)
    _versiyon_kontrol(db_basvuru, istek.version)
    is_akisi = _is_akisi(db, kullanici_adi)
    return _calistir(
        lambda: is_akisi.degerlendir(db_basvuru, istek.durum, istek.degerlendirme_notu),
        "Başvuru değerlendirilirken hata"
    )


@router.post("/{basvuru_id}/baskan-karari", response_model=semalar.YardimBasvurusuRead)
def baskan_karari(
    basvuru_id: int,
    istek: semalar.BaskanKarariIstegi,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_basvuru = _basvuru(db, basvuru_id)
    _versiyon_kontrol(db_basvuru, istek.version)
    is_akisi = _is_akisi(db, kullanici_adi)
    return _calistir(
        lambda: is_akisi.baskan_karari(db_basvuru, istek.onay, istek.baskan_onay_notu),
        "Başkan kararı kaydedilirken hata"
    )


@router.post("/{basvuru_id}/odeme", response_model=semalar.OdemeOlusturmaYaniti, status_code=status.HTTP_201_CREATED)
def odeme_olustur(
    basvuru_id: int,
    istek: Optional[semalar.OdemeOlusturmaIstegi] = None,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_basvuru = _basvuru(db, basvuru_id)
    _versiyon_kontrol(db_basvuru, istek.version if istek else None)
    is_akisi = _is_akisi(db, kullanici_adi)
    db_odeme = _calistir(lambda: is_akisi.odeme_olustur(db_basvuru), "Ödeme oluşturulurken hata")
    return {
        "basvuru": semalar.YardimBasvurusuRead.model_validate(db_basvuru, from_attributes=True),
        "odeme": semalar.OdemeRead.model_validate(db_odeme, from_attributes=True),
    }


@router.get("/{basvuru_id}/yorumlar", response_model=List[semalar.YorumRead])
def read_yorumlar(basvuru_id: int, db: Session = Depends(veritabani.get_db)):
    db_basvuru = _basvuru(db, basvuru_id)
    return BasvuruIsAkisi(db, "").yorumlar(db_basvuru)


@router.post("/{basvuru_id}/yorumlar", response_model=semalar.YorumRead, status_code=status.HTTP_201_CREATED)
def create_yorum(
    basvuru_id: int,
    yorum: semalar.YorumCreate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_basvuru = _basvuru(db, basvuru_id)
    is_akisi = _is_akisi(db, kullanici_adi)
    return _calistir(lambda: is_akisi.yorum_ekle(db_basvuru, yorum.icerik), "Yorum eklenirken hata")


@router.post("/{basvuru_id}/dosyalar", response_model=semalar.DosyaRead, status_code=status.HTTP_201_CREATED)
def create_dosya(
    basvuru_id: int,
    dosya: semalar.DosyaCreate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_basvuru = _basvuru(db, basvuru_id)
    is_akisi = _is_akisi(db, kullanici_adi)
    return _calistir(lambda: is_akisi.dosya_ekle(db_basvuru, dosya.ad, dosya.tip, dosya.boyut), "Dosya eklenirken hata")
