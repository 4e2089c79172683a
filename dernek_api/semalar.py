from datetime import date, datetime
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from .modeller import (
    BasvuruDurumu, BasvuruAsamasi, BasvuruOnceligi, YardimTuru, BagisTuru, ParaBirimi, ProjeDurumu,
    GorevDurumu, GorevOnceligi, OdemeTuru, OdemeDurumu, OdemeYontemi, KisiDurumu,
    UyelikTuru, DenetimEylemi, DenetimVarlikTuru
)


# --- PYDANTIC ŞEMALARI İÇİN TEMEL MODELLER ---
class BaseOrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class SayfaliYanit(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int


class MesajYaniti(BaseModel):
    message: str


class NextCodeResponse(BaseModel):
    next_code: str


class GuncellemeSemasi(BaseModel):
    """Kısmi güncelleme gövdesi. Zorunlu alanlara açıkça null gönderilemez."""
    bos_birakilamaz: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def zorunlu_alanlar_null_olamaz(cls, veri):
        if isinstance(veri, dict):
            bos_alanlar = [alan for alan in cls.bos_birakilamaz if alan in veri and veri[alan] is None]
            if bos_alanlar:
                raise ValueError(f"Bu alanlar boş bırakılamaz: {', '.join(bos_alanlar)}")
        return veri


# --- KİŞİ ---
class KisiBase(BaseOrmModel):
    kimlik_no: Optional[str] = None
    uyruk: Optional[str] = None
    dogum_tarihi: Optional[date] = None
    cep_telefonu: Optional[str] = None
    email: Optional[EmailStr] = None
    adres: Optional[str] = None
    il: Optional[str] = None
    ilce: Optional[str] = None
    durum: KisiDurumu = KisiDurumu.AKTIF
    uyelik_turu: Optional[UyelikTuru] = None
    aylik_gelir: Optional[float] = Field(None, ge=0)
    hane_buyuklugu: Optional[int] = Field(None, ge=1)
    notlar: Optional[str] = None


class KisiCreate(KisiBase):
    ad: str = Field(..., min_length=1, max_length=100)
    soyad: str = Field(..., min_length=1, max_length=100)
    kayit_tarihi: Optional[date] = None


class KisiUpdate(GuncellemeSemasi):
    bos_birakilamaz = ("ad", "soyad", "durum")

    ad: Optional[str] = Field(None, min_length=1, max_length=100)
    soyad: Optional[str] = Field(None, min_length=1, max_length=100)
    kimlik_no: Optional[str] = None
    uyruk: Optional[str] = None
    dogum_tarihi: Optional[date] = None
    cep_telefonu: Optional[str] = None
    email: Optional[EmailStr] = None
    adres: Optional[str] = None
    il: Optional[str] = None
    ilce: Optional[str] = None
    durum: Optional[KisiDurumu] = None
    uyelik_turu: Optional[UyelikTuru] = None
    aylik_gelir: Optional[float] = Field(None, ge=0)
    hane_buyuklugu: Optional[int] = Field(None, ge=1)
    notlar: Optional[str] = None
    version: Optional[int] = None


class KisiRead(KisiBase):
    id: int
    ad: str
    soyad: str
    ad_soyad: str
    kayit_tarihi: date
    version: int


class KisiListResponse(SayfaliYanit):
    items: List[KisiRead]


class TopluSilmeIstegi(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class TopluSilmeYaniti(BaseModel):
    silinen: int
    message: str


class KisiOzetiYaniti(BaseModel):
    kisi_id: int
    ozet: str


class IceAktarmaSonucu(BaseModel):
    toplam_satir: int
    gecerli_satir: int
    eklenen: int
    hatalar: List[str]
    uyarilar: List[str] = []


# --- PROJE ---
class GorevBase(BaseOrmModel):
    baslik: str = Field(..., min_length=1, max_length=200)
    aciklama: Optional[str] = None
    sorumlu_id: Optional[int] = None
    son_tarih: Optional[date] = None
    oncelik: GorevOnceligi = GorevOnceligi.NORMAL
    durum: GorevDurumu = GorevDurumu.YAPILACAK


class GorevCreate(GorevBase):
    pass


class GorevUpdate(GuncellemeSemasi):
    bos_birakilamaz = ("baslik", "oncelik", "durum")

    baslik: Optional[str] = Field(None, min_length=1, max_length=200)
    aciklama: Optional[str] = None
    sorumlu_id: Optional[int] = None
    son_tarih: Optional[date] = None
    oncelik: Optional[GorevOnceligi] = None
    durum: Optional[GorevDurumu] = None


class GorevRead(GorevBase):
    id: int
    proje_id: int


class ProjeBase(BaseOrmModel):
    ad: str = Field(..., min_length=1, max_length=200)
    yonetici: Optional[str] = None
    durum: ProjeDurumu = ProjeDurumu.PLANLAMA
    baslangic_tarihi: Optional[date] = None
    bitis_tarihi: Optional[date] = None
    butce: float = Field(0.0, ge=0)
    harcanan: float = Field(0.0, ge=0)
    ilerleme: int = Field(0, ge=0, le=100)
    aciklama: Optional[str] = None


class ProjeCreate(ProjeBase):
    @model_validator(mode="after")
    def tarih_sirasi(self):
        if self.baslangic_tarihi and self.bitis_tarihi and self.bitis_tarihi < self.baslangic_tarihi:
            raise ValueError("Bitiş tarihi başlangıç tarihinden önce olamaz.")
        return self


class ProjeUpdate(GuncellemeSemasi):
    bos_birakilamaz = ("ad", "durum", "butce", "harcanan", "ilerleme")

    ad: Optional[str] = Field(None, min_length=1, max_length=200)
    yonetici: Optional[str] = None
    durum: Optional[ProjeDurumu] = None
    baslangic_tarihi: Optional[date] = None
    bitis_tarihi: Optional[date] = None
    butce: Optional[float] = Field(None, ge=0)
    harcanan: Optional[float] = Field(None, ge=0)
    ilerleme: Optional[int] = Field(None, ge=0, le=100)
    aciklama: Optional[str] = None
    version: Optional[int] = None


class ProjeRead(ProjeBase):
    id: int
    version: int
    gorevler: List[GorevRead] = []
    toplanan_bagis: float = 0.0
    butce_kullanim_orani: float = 0.0


class ProjeListResponse(SayfaliYanit):
    items: List[ProjeRead]


# --- BAĞIŞ ---
class BagisBase(BaseOrmModel):
    bagisci_id: int
    tutar: float = Field(..., gt=0)
    para_birimi: ParaBirimi = ParaBirimi.TRY
    bagis_turu: BagisTuru
    aciklama: Optional[str] = None
    proje_id: Optional[int] = None


class BagisCreate(BagisBase):
    tarih: Optional[date] = None
    makbuz_no: Optional[str] = Field(None, max_length=30)


class BagisUpdate(GuncellemeSemasi):
    bos_birakilamaz = ("bagisci_id", "tutar", "para_birimi", "bagis_turu", "tarih")

    bagisci_id: Optional[int] = None
    tutar: Optional[float] = Field(None, gt=0)
    para_birimi: Optional[ParaBirimi] = None
    bagis_turu: Optional[BagisTuru] = None
    tarih: Optional[date] = None
    aciklama: Optional[str] = None
    proje_id: Optional[int] = None


class BagisRead(BagisBase):
    id: int
    tarih: date
    makbuz_no: str
    bagisci_adi: Optional[str] = None
    proje_adi: Optional[str] = None


class BagisListResponse(SayfaliYanit):
    items: List[BagisRead]


class BagisIstatistikleri(BaseModel):
    aylik_toplam: float
    bagisci_sayisi: int
    ortalama_bagis: float
    toplam_bagis_sayisi: int
    toplam_tutar: float


# --- ÖDEME ---
class OdemeBase(BaseOrmModel):
    odeme_turu: OdemeTuru
    kisi: str = Field(..., min_length=1, max_length=200)
    tutar: float = Field(..., gt=0)
    para_birimi: ParaBirimi = ParaBirimi.TRY
    aciklama: Optional[str] = None
    odeme_yontemi: OdemeYontemi
    durum: OdemeDurumu = OdemeDurumu.BEKLEYEN


class OdemeCreate(OdemeBase):
    odeme_tarihi: Optional[date] = None


class OdemeUpdate(GuncellemeSemasi):
    bos_birakilamaz = ("odeme_turu", "kisi", "tutar", "para_birimi", "odeme_yontemi", "odeme_tarihi", "durum")

    odeme_turu: Optional[OdemeTuru] = None
    kisi: Optional[str] = Field(None, min_length=1, max_length=200)
    tutar: Optional[float] = Field(None, gt=0)
    para_birimi: Optional[ParaBirimi] = None
    aciklama: Optional[str] = None
    odeme_yontemi: Optional[OdemeYontemi] = None
    odeme_tarihi: Optional[date] = None
    durum: Optional[OdemeDurumu] = None


class OdemeRead(OdemeBase):
    id: int
    odeme_tarihi: date


class OdemeListResponse(SayfaliYanit):
    items: List[OdemeRead]


# --- YARDIM BAŞVURUSU ---
class DosyaCreate(BaseModel):
    ad: str = Field(..., min_length=1, max_length=255)
    tip: Optional[str] = None
    boyut: Optional[int] = Field(None, ge=0)


class DosyaRead(BaseOrmModel):
    id: int
    ad: str
    tip: Optional[str] = None
    boyut: Optional[int] = None
    yol: str
    yuklenme_tarihi: datetime


class YorumCreate(BaseModel):
    icerik: str = Field(..., max_length=5000)


class YorumRead(BaseOrmModel):
    id: int
    zaman: datetime
    kullanici_adi: str
    icerik: str
    entity_tipi: DenetimVarlikTuru
    entity_id: int
    bahsedilenler: List[str] = []


class YardimBasvurusuCreate(BaseModel):
    basvuru_sahibi_id: int
    basvuru_turu: YardimTuru
    talep_tutari: float = Field(..., gt=0)
    oncelik: BasvuruOnceligi = BasvuruOnceligi.ORTA
    talep_detayi: Optional[str] = None


class YardimBasvurusuUpdate(GuncellemeSemasi):
    bos_birakilamaz = ("basvuru_turu", "talep_tutari", "oncelik")

    basvuru_turu: Optional[YardimTuru] = None
    talep_tutari: Optional[float] = Field(None, gt=0)
    oncelik: Optional[BasvuruOnceligi] = None
    talep_detayi: Optional[str] = None
    version: Optional[int] = None


class YardimBasvurusuRead(BaseOrmModel):
    id: int
    basvuru_sahibi_id: int
    basvuru_sahibi_adi: Optional[str] = None
    basvuru_turu: YardimTuru
    talep_tutari: float
    oncelik: BasvuruOnceligi
    basvuru_tarihi: date
    durum: BasvuruDurumu
    asama: BasvuruAsamasi
    degerlendirme_notu: Optional[str] = None
    talep_detayi: Optional[str] = None
    odeme_id: Optional[int] = None
    baskan_onayi: Optional[bool] = None
    baskan_onay_notu: Optional[str] = None
    version: int
    dosyalar: List[DosyaRead] = []


class YardimBasvurusuDetay(YardimBasvurusuRead):
    yorumlar: List[YorumRead] = []


class YardimBasvurusuListResponse(SayfaliYanit):
    items: List[YardimBasvurusuRead]


class DegerlendirmeIstegi(BaseModel):
    durum: BasvuruDurumu
    degerlendirme_notu: Optional[str] = None
    version: Optional[int] = None


class BaskanKarariIstegi(BaseModel):
    onay: bool
    baskan_onay_notu: Optional[str] = None
    version: Optional[int] = None


class OdemeOlusturmaIstegi(BaseModel):
    version: Optional[int] = None


class OdemeOlusturmaYaniti(BaseModel):
    basvuru: YardimBasvurusuRead
    odeme: OdemeRead


# --- DENETİM KAYITLARI ---
class DenetimKaydiRead(BaseOrmModel):
    id: int
    zaman: datetime
    kullanici_adi: str
    eylem: DenetimEylemi
    entity_tipi: DenetimVarlikTuru
    entity_id: Optional[int] = None
    aciklama: str
    detaylar: Optional[Dict[str, Any]] = None


class DenetimKaydiListResponse(SayfaliYanit):
    items: List[DenetimKaydiRead]


# --- AKILLI ARAMA ---
class AkilliAramaIstegi(BaseModel):
    sorgu: str = Field(..., min_length=1, max_length=500)


class AkilliAramaSonucu(BaseModel):
    path: str
    filters: Dict[str, str] = {}
    explanation: str


class OneriListesi(BaseModel):
    items: List[str]


# --- RAPORLAR ---
class DashboardIstatistikleri(BaseModel):
    toplam_uye: int
    aylik_bagis: float
    aktif_proje: int
    bekleyen_basvuru: int


class SonAktivite(BaseModel):
    id: str
    tip: str
    zaman: date
    aciklama: str
    tutar: Optional[str] = None
    link: str


class AdDeger(BaseModel):
    name: str
    value: float


class DashboardYaniti(BaseModel):
    istatistikler: DashboardIstatistikleri
    son_aktiviteler: List[SonAktivite]
    aylik_bagislar: List[AdDeger]


class AylikFinans(BaseModel):
    name: str
    income: float
    expense: float


class AnalitikYaniti(BaseModel):
    toplam_kisi: int
    yardim_alanlar_uyruk: List[AdDeger]
    basvuru_durumlari: List[AdDeger]
    aylik_finans: List[AylikFinans]


class AnalitikOzet(BaseModel):
    ozet: str
    olumlu_egilimler: List[str]
    dikkat_alanlari: List[str]
    eylem_onerileri: List[str]


class RaporDosyasiYaniti(BaseModel):
    message: str
    dosya_adi: str
    filepath: str
