import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from fastapi import Header, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import modeller
from . import liste
from .config import settings

logger = logging.getLogger(__name__)


def aktif_kullanici_adi(x_kullanici: Optional[str] = Header(None)) -> str:
    """İşlemi yapan kişinin adı; yalnızca kayıtlarda gösterim amaçlıdır."""
    if x_kullanici and x_kullanici.strip():
        return x_kullanici.strip()[:100]
    return settings.VARSAYILAN_KULLANICI


def _get_or_404(db: Session, model: Type, kayit_id: int, etiket: str):
    kayit = db.query(model).filter(model.id == kayit_id).first()
    if not kayit:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{etiket} bulunamadı")
    return kayit


def _versiyon_kontrol(db_kayit, istenen_versiyon: Optional[int]):
    if istenen_versiyon is not None and db_kayit.version != istenen_versiyon:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                "Bu kayıt siz düzenlerken başka bir kullanıcı tarafından güncellendi. "
                "Lütfen verileri yenileyip tekrar deneyin."
            )
        )


def denetim_kaydi_olustur(
    db: Session,
    kullanici_adi: str,
    eylem: modeller.DenetimEylemi,
    entity_tipi: modeller.DenetimVarlikTuru,
    aciklama: str,
    entity_id: Optional[int] = None,
    detaylar: Optional[Dict[str, Any]] = None,
) -> modeller.DenetimKaydi:
    """Denetim kaydını çağıranın transaction'ına ekler; commit çağırana aittir."""
    kayit = modeller.DenetimKaydi(
        kullanici_adi=kullanici_adi,
        eylem=eylem,
        entity_tipi=entity_tipi,
        entity_id=entity_id,
        aciklama=aciklama,
        detaylar=detaylar,
    )
    db.add(kayit)
    return kayit


def _jsonlanabilir(veri: Dict[str, Any]) -> Dict[str, Any]:
    # Denetim detaylarındaki enum/tarih değerlerini JSON'a uygun hale getirir
    sonuc = {}
    for anahtar, deger in veri.items():
        if hasattr(deger, "value"):
            deger = deger.value
        elif hasattr(deger, "isoformat"):
            deger = deger.isoformat()
        sonuc[anahtar] = deger
    return sonuc


def liste_yaniti(
    kayitlar: Iterable[Any],
    okuma_semasi,
    arama: Optional[str],
    arama_alanlari: List[Any],
    siralama: Optional[str],
    siralanabilir: Iterable[str],
    sayfa: int,
    sayfa_boyutu: int,
    varsayilan_siralama: Optional[List[liste.SiralamaOlcutu]] = None,
    predicate: Optional[Callable[[Any], bool]] = None,
) -> Dict[str, Any]:
    """ORM kayıtlarını okuma şemasına çevirip ortak liste zarfında döndürür."""
    try:
        olcutler = liste.siralama_parse(siralama, siralanabilir)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    okunanlar = [okuma_semasi.model_validate(k, from_attributes=True) for k in kayitlar]
    sonuc = liste.filter_sort_paginate(
        okunanlar,
        search={"query": arama, "pickers": arama_alanlari},
        predicate=predicate,
        sort=olcutler or varsayilan_siralama,
        pagination={"page": sayfa, "page_size": sayfa_boyutu},
    )
    return sonuc.as_dict()


def degisiklikleri_kaydet(db: Session, hata_mesaji: str, benzersizlik_mesaji: Optional[str] = None):
    """Commit eder; veritabanı hatalarında geri alıp HTTPException fırlatır."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"{hata_mesaji}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=benzersizlik_mesaji or f"{hata_mesaji}: kayıt veritabanı kısıtlarına uymuyor."
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{hata_mesaji}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"{hata_mesaji}.")


def is_akisi_hatasini_cevir(e) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.mesaj)
