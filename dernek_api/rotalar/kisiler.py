from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import modeller, semalar, veritabani, akilli_arama, disa_aktarim
from ..api_yardimcilar import (
    aktif_kullanici_adi, _get_or_404, _versiyon_kontrol, _jsonlanabilir,
    denetim_kaydi_olustur, degisiklikleri_kaydet, liste_yaniti
)
from ..liste import SiralamaOlcutu
from ..modeller import DenetimEylemi, DenetimVarlikTuru

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/kisiler", tags=["Kişiler"])

KIMLIK_NO_MESAJI = "Bu kimlik numarası ile kayıtlı bir kişi zaten mevcut."
ARAMA_ALANLARI = ["ad", "soyad", "ad_soyad", "kimlik_no", "cep_telefonu", "email", "il", "ilce"]
SIRALANABILIR = ["id", "ad", "soyad", "kayit_tarihi", "il", "uyruk", "durum", "dogum_tarihi"]


def _bagli_kayit_kontrol(db: Session, kisi: modeller.Kisi):
    bagis_var = db.query(modeller.Bagis.id).filter(modeller.Bagis.bagisci_id == kisi.id).first()
    basvuru_var = db.query(modeller.YardimBasvurusu.id).filter(
        modeller.YardimBasvurusu.basvuru_sahibi_id == kisi.id
    ).first()
    if bagis_var or basvuru_var:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{kisi.ad_soyad} adlı kişinin bağış veya yardım başvurusu kayıtları olduğu için silinemez."
        )
    gorev_var = db.query(modeller.Gorev.id).filter(modeller.Gorev.sorumlu_id == kisi.id).first()
    if gorev_var:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{kisi.ad_soyad} adlı kişi proje görevlerinde sorumlu olarak atandığı için silinemez."
        )


@router.post("/", response_model=semalar.KisiRead, status_code=status.HTTP_201_CREATED)
def create_kisi(
    kisi: semalar.KisiCreate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    veri = kisi.model_dump(exclude_unset=True)
    if veri.get("kayit_tarihi") is None:
        veri["kayit_tarihi"] = date.today()
    db_kisi = modeller.Kisi(**veri, version=0)
    db.add(db_kisi)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=KIMLIK_NO_MESAJI)

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.OLUSTURMA, DenetimVarlikTuru.KISI,
        f"Yeni kişi kaydı: {db_kisi.ad_soyad}", entity_id=db_kisi.id
    )
    degisiklikleri_kaydet(db, "Kişi kaydı oluşturulurken hata", KIMLIK_NO_MESAJI)
    db.refresh(db_kisi)
    logger.info(f"Kişi oluşturuldu: #{db_kisi.id} {db_kisi.ad_soyad}")
    return semalar.KisiRead.model_validate(db_kisi, from_attributes=True)


@router.get("/", response_model=semalar.KisiListResponse)
def read_kisiler(
    arama: Optional[str] = None,
    durum: Optional[modeller.KisiDurumu] = None,
    uyruk: Optional[str] = None,
    il: Optional[str] = None,
    uyelik_turu: Optional[modeller.UyelikTuru] = None,
    kayit_baslangic: Optional[date] = Query(None, description="Kayıt tarihi alt sınırı (YYYY-MM-DD)"),
    kayit_bitis: Optional[date] = Query(None, description="Kayıt tarihi üst sınırı (YYYY-MM-DD)"),
    siralama: Optional[str] = Query(None, description="Örn: -kayit_tarihi,ad"),
    sayfa: int = 1,
    sayfa_boyutu: int = 25,
    db: Session = Depends(veritabani.get_db)
):
    query = db.query(modeller.Kisi)

    if durum:
        query = query.filter(modeller.Kisi.durum == durum)
    if uyruk:
        query = query.filter(modeller.Kisi.uyruk == uyruk)
    if il:
        query = query.filter(modeller.Kisi.il == il)
    if uyelik_turu:
        query = query.filter(modeller.Kisi.uyelik_turu == uyelik_turu)
    if kayit_baslangic:
        query = query.filter(modeller.Kisi.kayit_tarihi >= kayit_baslangic)
    if kayit_bitis:
        query = query.filter(modeller.Kisi.kayit_tarihi <= kayit_bitis)

    return liste_yaniti(
        query.all(), semalar.KisiRead, arama, ARAMA_ALANLARI, siralama, SIRALANABILIR, sayfa, sayfa_boyutu,
        varsayilan_siralama=[SiralamaOlcutu("kayit_tarihi", "desc"), SiralamaOlcutu("id", "desc")]
    )


@router.post("/toplu-sil", response_model=semalar.TopluSilmeYaniti)
def toplu_kisi_sil(
    istek: semalar.TopluSilmeIstegi,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    """Seçilen kişileri tek transaction içinde siler; biri bile silinemezse hiçbiri silinmez."""
    ids = list(dict.fromkeys(istek.ids))
    kisiler = db.query(modeller.Kisi).filter(modeller.Kisi.id.in_(ids)).all()
    bulunanlar = {k.id for k in kisiler}
    eksikler = [i for i in ids if i not in bulunanlar]
    if eksikler:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Kişi bulunamadı: {', '.join(str(i) for i in eksikler)}"
        )

    for kisi in kisiler:
        _bagli_kayit_kontrol(db, kisi)

    for kisi in kisiler:
        denetim_kaydi_olustur(
            db, kullanici_adi, DenetimEylemi.SILME, DenetimVarlikTuru.KISI,
            f"Kişi silindi: {kisi.ad_soyad}", entity_id=kisi.id
        )
        db.delete(kisi)
    degisiklikleri_kaydet(db, "Kişiler silinirken hata")
    logger.info(f"{len(kisiler)} kişi toplu olarak silindi.")
    return {"silinen": len(kisiler), "message": f"{len(kisiler)} kişi silindi."}


@router.post("/ice-aktar", response_model=semalar.IceAktarmaSonucu)
def kisileri_ice_aktar(
    dosya: UploadFile = File(...),
    kaydet: bool = Query(True, description="False ise yalnızca doğrulama yapılır"),
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    icerik = dosya.file.read()
    mevcut_kimlikler = {
        k for (k,) in db.query(modeller.Kisi.kimlik_no).filter(modeller.Kisi.kimlik_no.isnot(None)).all()
    }
    try:
        sonuc = disa_aktarim.kisi_excel_oku(icerik, mevcut_kimlikler)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    eklenen = 0
    if kaydet and sonuc["kayitlar"]:
        for kisi in sonuc["kayitlar"]:
            veri = kisi.model_dump(exclude_unset=True)
            veri.setdefault("kayit_tarihi", date.today())
            db.add(modeller.Kisi(**veri, version=0))
        eklenen = len(sonuc["kayitlar"])
        denetim_kaydi_olustur(
            db, kullanici_adi, DenetimEylemi.OLUSTURMA, DenetimVarlikTuru.KISI,
            f"Excel dosyasından {eklenen} kişi içe aktarıldı.",
            detaylar={"dosya": dosya.filename, "eklenen": eklenen, "hatali": len(sonuc["hatalar"])}
        )
        degisiklikleri_kaydet(db, "Kişiler içe aktarılırken hata", KIMLIK_NO_MESAJI)
        logger.info(f"Excel içe aktarma tamamlandı: {eklenen} kişi eklendi, {len(sonuc['hatalar'])} satır hatalı.")

    return {
        "toplam_satir": sonuc["toplam_satir"],
        "gecerli_satir": len(sonuc["kayitlar"]),
        "eklenen": eklenen,
        "hatalar": sonuc["hatalar"],
        "uyarilar": sonuc["uyarilar"],
    }


@router.get("/{kisi_id}", response_model=semalar.KisiRead)
def read_kisi(kisi_id: int, db: Session = Depends(veritabani.get_db)):
    return _get_or_404(db, modeller.Kisi, kisi_id, "Kişi")


@router.get("/{kisi_id}/ozet", response_model=semalar.KisiOzetiYaniti)
def get_kisi_ozeti(kisi_id: int, db: Session = Depends(veritabani.get_db)):
    kisi = _get_or_404(db, modeller.Kisi, kisi_id, "Kişi")

    ozel_durumlar = []
    if kisi.uyelik_turu:
        ozel_durumlar.append(f"{kisi.uyelik_turu.value} üye")
    if kisi.hane_buyuklugu:
        ozel_durumlar.append(f"{kisi.hane_buyuklugu} kişilik hane")
    if kisi.basvurular:
        ozel_durumlar.append(f"{len(kisi.basvurular)} yardım başvurusu")

    ozet = akilli_arama.kisi_ozeti(kisi.ad_soyad, kisi.kayit_tarihi, kisi.durum.value, ozel_durumlar, kisi.notlar)
    return {"kisi_id": kisi.id, "ozet": ozet}


@router.put("/{kisi_id}", response_model=semalar.KisiRead)
def update_kisi(
    kisi_id: int,
    kisi_update: semalar.KisiUpdate,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    """
    ID'si verilen kişi kaydını günceller.
    Optimistic Locking (İyimser Kilitleme) uygular.
    """
    db_kisi = _get_or_404(db, modeller.Kisi, kisi_id, "Kişi")
    _versiyon_kontrol(db_kisi, kisi_update.version)

    update_data = kisi_update.model_dump(exclude_unset=True, exclude={"version"})
    for key, value in update_data.items():
        setattr(db_kisi, key, value)
    db_kisi.version += 1

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.GUNCELLEME, DenetimVarlikTuru.KISI,
        f"Kişi güncellendi: {db_kisi.ad_soyad}", entity_id=db_kisi.id, detaylar=_jsonlanabilir(update_data)
    )
    degisiklikleri_kaydet(db, "Kişi güncellenirken hata", KIMLIK_NO_MESAJI)
    db.refresh(db_kisi)
    return db_kisi


@router.delete("/{kisi_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_kisi(
    kisi_id: int,
    db: Session = Depends(veritabani.get_db),
    kullanici_adi: str = Depends(aktif_kullanici_adi)
):
    db_kisi = _get_or_404(db, modeller.Kisi, kisi_id, "Kişi")
    _bagli_kayit_kontrol(db, db_kisi)

    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.SILME, DenetimVarlikTuru.KISI,
        f"Kişi silindi: {db_kisi.ad_soyad}", entity_id=db_kisi.id
    )
    db.delete(db_kisi)
    degisiklikleri_kaydet(db, "Kişi silinirken hata")
    return
