import logging
import os
import re
from collections import Counter
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import modeller
from .api_yardimcilar import denetim_kaydi_olustur, _jsonlanabilir
from .bicim import format_currency
from .modeller import BasvuruDurumu, DenetimEylemi, DenetimVarlikTuru

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class IsAkisiHatasi(Exception):
    """İş kuralı ihlali; rotalar status_code ile HTTP yanıtına çevirir."""
    status_code = 409

    def __init__(self, mesaj: str):
        super().__init__(mesaj)
        self.mesaj = mesaj


class KayitBulunamadiHatasi(IsAkisiHatasi):
    status_code = 404


class GecersizIstekHatasi(IsAkisiHatasi):
    status_code = 400


DEGERLENDIRME_DURUMLARI = (
    BasvuruDurumu.BEKLEYEN,
    BasvuruDurumu.INCELENEN,
    BasvuruDurumu.ONAYLANAN,
    BasvuruDurumu.REDDEDILEN,
)

DUZENLENEBILIR_BASVURU_ALANLARI = ("basvuru_turu", "talep_tutari", "oncelik", "talep_detayi")

_BAHSETME_DESENI = re.compile(r"@(\w[\w.]*)")


def bahsedilenleri_bul(icerik: str) -> List[str]:
    """Yorum içindeki @kullanici bahsetmelerini sırasıyla ve tekrarsız döndürür."""
    gorulen = []
    for ad in _BAHSETME_DESENI.findall(icerik or ""):
        ad = ad.rstrip(".")
        if ad and ad not in gorulen:
            gorulen.append(ad)
    return gorulen


def yorum_ekle(
    db: Session,
    kullanici_adi: str,
    entity_tipi: DenetimVarlikTuru,
    entity_id: int,
    icerik: str,
) -> modeller.Yorum:
    icerik = (icerik or "").strip()
    if not icerik:
        raise GecersizIstekHatasi("Yorum içeriği boş olamaz.")
    yorum = modeller.Yorum(
        kullanici_adi=kullanici_adi,
        icerik=icerik,
        entity_tipi=entity_tipi,
        entity_id=entity_id,
        bahsedilenler=bahsedilenleri_bul(icerik),
    )
    db.add(yorum)
    db.flush()
    denetim_kaydi_olustur(
        db, kullanici_adi, DenetimEylemi.OLUSTURMA, DenetimVarlikTuru.YORUM,
        f"{entity_tipi.value} #{entity_id} için yorum eklendi.", entity_id=yorum.id,
        detaylar={"entity_tipi": entity_tipi.value, "entity_id": entity_id},
    )
    return yorum


class BasvuruIsAkisi:
    """
    Yardım başvurusu iş akışı.
    Bekleyen -> İncelenen -> Onaylanan -> başkan onayı -> ödeme -> Tamamlanan;
    komisyon (Reddedilen) ve başkan (Başkan Reddetti) ret dallarıyla.
    Her metot kendi transaction'ını commit eder, hata halinde geri alır.
    """

    def __init__(self, db: Session, kullanici_adi: str):
        self.db = db
        self.kullanici_adi = kullanici_adi

    def _kaydet(self, hata_mesaji: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{hata_mesaji}: {e}", exc_info=True)
            raise

    def _denetim(self, eylem: DenetimEylemi, basvuru: modeller.YardimBasvurusu, aciklama: str, detaylar: Optional[Dict] = None):
        denetim_kaydi_olustur(
            self.db, self.kullanici_adi, eylem, DenetimVarlikTuru.BASVURU, aciklama,
            entity_id=basvuru.id, detaylar=detaylar,
        )

    def _basvuru_sahibi(self, kisi_id: int) -> modeller.Kisi:
        kisi = self.db.query(modeller.Kisi).filter(modeller.Kisi.id == kisi_id).first()
        if not kisi:
            raise KayitBulunamadiHatasi("Başvuru sahibi kişi bulunamadı.")
        return kisi

    def olustur(self, veri: Dict) -> modeller.YardimBasvurusu:
        kisi = self._basvuru_sahibi(veri["basvuru_sahibi_id"])
        basvuru = modeller.YardimBasvurusu(
            **veri,
            durum=BasvuruDurumu.BEKLEYEN,
            basvuru_tarihi=date.today(),
            baskan_onayi=None,
            baskan_onay_notu=None,
            version=0,
        )
        self.db.add(basvuru)
        self.db.flush()
        self._denetim(
            DenetimEylemi.OLUSTURMA, basvuru,
            f"{kisi.ad_soyad} için {basvuru.basvuru_turu.value} başvurusu oluşturuldu.",
            detaylar={"talep_tutari": basvuru.talep_tutari},
        )
        self._kaydet("Başvuru oluşturulurken hata")
        self.db.refresh(basvuru)
        logger.info(f"Yardım başvurusu oluşturuldu: #{basvuru.id}")
        return basvuru

    def guncelle(self, basvuru: modeller.YardimBasvurusu, degisiklikler: Dict) -> modeller.YardimBasvurusu:
        if basvuru.odeme_id is not None:
            raise IsAkisiHatasi("Ödemesi oluşturulmuş başvuru düzenlenemez.")
        uygulanan = {}
        for anahtar, deger in degisiklikler.items():
            if anahtar in DUZENLENEBILIR_BASVURU_ALANLARI:
                setattr(basvuru, anahtar, deger)
                uygulanan[anahtar] = deger
        basvuru.version += 1
        self._denetim(DenetimEylemi.GUNCELLEME, basvuru, f"Başvuru #{basvuru.id} güncellendi.", _jsonlanabilir(uygulanan))
        self._kaydet("Başvuru güncellenirken hata")
        self.db.refresh(basvuru)
        return basvuru

    def sil(self, basvuru: modeller.YardimBasvurusu):
        if basvuru.odeme_id is not None:
            raise IsAkisiHatasi("Ödemesi oluşturulmuş başvuru silinemez.")
        basvuru_id = basvuru.id
        self.db.query(modeller.Yorum).filter(
            modeller.Yorum.entity_tipi == DenetimVarlikTuru.BASVURU,
            modeller.Yorum.entity_id == basvuru_id
        ).delete(synchronize_session=False)
        self._denetim(DenetimEylemi.SILME, basvuru, f"Başvuru #{basvuru_id} silindi.")
        self.db.delete(basvuru)
        self._kaydet("Başvuru silinirken hata")
        logger.info(f"Yardım başvurusu silindi: #{basvuru_id}")

    def degerlendir(self, basvuru: modeller.YardimBasvurusu, yeni_durum: BasvuruDurumu, notu: Optional[str]) -> modeller.YardimBasvurusu:
        if basvuru.durum in (BasvuruDurumu.TAMAMLANAN, BasvuruDurumu.BASKAN_REDDETTI):
            raise IsAkisiHatasi(f"'{basvuru.durum.value}' durumundaki başvuru yeniden değerlendirilemez.")
        if basvuru.odeme_id is not None:
            raise IsAkisiHatasi("Ödemesi oluşturulmuş başvuru değerlendirilemez.")
        if basvuru.baskan_onayi is True:
            raise IsAkisiHatasi("Başkan onayı verilmiş başvuru yeniden değerlendirilemez.")
        if yeni_durum not in DEGERLENDIRME_DURUMLARI:
            izinli = ", ".join(d.value for d in DEGERLENDIRME_DURUMLARI)
            raise GecersizIstekHatasi(f"Değerlendirmede yalnızca şu durumlar seçilebilir: {izinli}.")

        eski_durum = basvuru.durum
        basvuru.durum = yeni_durum
        basvuru.degerlendirme_notu = notu
        # Komisyon kararı değişince başkan kararı yeniden beklenir
        basvuru.baskan_onayi = None
        basvuru.baskan_onay_notu = None
        basvuru.version += 1
        self._denetim(
            DenetimEylemi.GUNCELLEME, basvuru,
            f"Başvuru #{basvuru.id} değerlendirildi: {eski_durum.value} -> {yeni_durum.value}.",
            detaylar={"eski_durum": eski_durum.value, "yeni_durum": yeni_durum.value},
        )
        self._kaydet("Başvuru değerlendirilirken hata")
        self.db.refresh(basvuru)
        logger.info(f"Başvuru #{basvuru.id} durumu güncellendi: {eski_durum.value} -> {yeni_durum.value}")
        return basvuru

    def baskan_onay_kuyrugu(self) -> List[modeller.YardimBasvurusu]:
        return self.db.query(modeller.YardimBasvurusu).filter(
            modeller.YardimBasvurusu.durum == BasvuruDurumu.ONAYLANAN,
            or_(modeller.YardimBasvurusu.baskan_onayi.is_(None), modeller.YardimBasvurusu.baskan_onayi.is_(False)),
            modeller.YardimBasvurusu.baskan_onay_notu.is_(None),
        ).order_by(modeller.YardimBasvurusu.basvuru_tarihi, modeller.YardimBasvurusu.id).all()

    def baskan_karari(self, basvuru: modeller.YardimBasvurusu, onay: bool, notu: Optional[str]) -> modeller.YardimBasvurusu:
        if basvuru.durum != BasvuruDurumu.ONAYLANAN or basvuru.baskan_onayi is not None:
            raise IsAkisiHatasi("Bu başvuru başkan onayı beklemiyor.")

        basvuru.baskan_onayi = onay
        basvuru.baskan_onay_notu = notu
        if not onay:
            basvuru.durum = BasvuruDurumu.BASKAN_REDDETTI
        basvuru.version += 1
        self._denetim(
            DenetimEylemi.ONAYLAMA if onay else DenetimEylemi.REDDETME, basvuru,
            f"Başvuru #{basvuru.id} başkan tarafından {'onaylandı' if onay else 'reddedildi'}.",
            detaylar={"not": notu},
        )
        self._kaydet("Başkan kararı kaydedilirken hata")
        self.db.refresh(basvuru)
        logger.info(f"Başvuru #{basvuru.id} için başkan kararı: {'onay' if onay else 'ret'}")
        return basvuru

    def odeme_olustur(self, basvuru: modeller.YardimBasvurusu) -> modeller.Odeme:
        if basvuru.odeme_id is not None:
            raise IsAkisiHatasi("Bu başvuru için ödeme zaten oluşturulmuş.")
        if basvuru.durum != BasvuruDurumu.ONAYLANAN or basvuru.baskan_onayi is not True:
            raise IsAkisiHatasi("Ödeme oluşturmak için başvurunun komisyon ve başkan onayı almış olması gerekir.")
        kisi = self._basvuru_sahibi(basvuru.basvuru_sahibi_id)

        odeme = modeller.Odeme(
            odeme_turu=modeller.OdemeTuru.YARDIM_ODEMESI,
            kisi=f"{kisi.ad} {kisi.soyad}",
            tutar=basvuru.talep_tutari,
            para_birimi=modeller.ParaBirimi.TRY,
            aciklama=f"Yardım Başvurusu #{basvuru.id} - {basvuru.basvuru_turu.value}",
            odeme_yontemi=modeller.OdemeYontemi.BANKA_TRANSFERI,
            odeme_tarihi=date.today(),
            durum=modeller.OdemeDurumu.TAMAMLANAN,
        )
        self.db.add(odeme)
        self.db.flush()

        basvuru.odeme_id = odeme.id
        basvuru.durum = BasvuruDurumu.TAMAMLANAN
        basvuru.version += 1
        self._denetim(
            DenetimEylemi.ODEME_OLUSTURMA, basvuru,
            f"Başvuru #{basvuru.id} için {format_currency(odeme.tutar)} tutarında ödeme oluşturuldu.",
            detaylar={"odeme_id": odeme.id, "tutar": odeme.tutar},
        )
        self._kaydet("Ödeme oluşturulurken hata")
        self.db.refresh(basvuru)
        self.db.refresh(odeme)
        logger.info(f"Başvuru #{basvuru.id} için ödeme oluşturuldu: Ödeme #{odeme.id}")
        return odeme

    def yorum_ekle(self, basvuru: modeller.YardimBasvurusu, icerik: str) -> modeller.Yorum:
        yorum = yorum_ekle(self.db, self.kullanici_adi, DenetimVarlikTuru.BASVURU, basvuru.id, icerik)
        self._kaydet("Yorum eklenirken hata")
        self.db.refresh(yorum)
        return yorum

    def yorumlar(self, basvuru: modeller.YardimBasvurusu) -> List[modeller.Yorum]:
        return self.db.query(modeller.Yorum).filter(
            modeller.Yorum.entity_tipi == DenetimVarlikTuru.BASVURU,
            modeller.Yorum.entity_id == basvuru.id
        ).order_by(modeller.Yorum.zaman, modeller.Yorum.id).all()

    def dosya_ekle(self, basvuru: modeller.YardimBasvurusu, ad: str, tip: Optional[str], boyut: Optional[int]) -> modeller.BasvuruDosyasi:
        ad = os.path.basename((ad or "").replace("\\", "/")).strip()
        if not ad:
            raise GecersizIstekHatasi("Geçerli bir dosya adı girilmelidir.")
        if any(d.ad == ad for d in basvuru.dosyalar):
            raise IsAkisiHatasi(f"'{ad}' adlı dosya bu başvuruya zaten eklenmiş.")

        dosya = modeller.BasvuruDosyasi(ad=ad, tip=tip, boyut=boyut, yol=f"basvurular/{basvuru.id}/{ad}")
        basvuru.dosyalar.append(dosya)
        self.db.flush()
        self._denetim(DenetimEylemi.GUNCELLEME, basvuru, f"Başvuru #{basvuru.id} için '{ad}' dosyası eklendi.")
        self._kaydet("Dosya eklenirken hata")
        self.db.refresh(dosya)
        return dosya


def sonraki_makbuz_no(db: Session, yil: Optional[int] = None) -> str:
    """MKB-<YIL>-<NNNN> biçiminde, o yıl verilmiş en büyük sıranın bir fazlası."""
    yil = yil or date.today().year
    onek = f"MKB-{yil}-"
    mevcutlar = db.query(modeller.Bagis.makbuz_no).filter(modeller.Bagis.makbuz_no.like(f"{onek}%")).all()
    en_buyuk = 0
    for (makbuz_no,) in mevcutlar:
        try:
            en_buyuk = max(en_buyuk, int(makbuz_no[len(onek):]))
        except ValueError:
            continue
    return f"{onek}{en_buyuk + 1:04d}"


def _ay_basi(bugun: date) -> date:
    return bugun.replace(day=1)


class PanoServisi:
    def __init__(self, db: Session):
        self.db = db

    def dashboard(self, bugun: Optional[date] = None) -> Dict:
        bugun = bugun or date.today()
        kisiler = self.db.query(modeller.Kisi).all()
        projeler = self.db.query(modeller.Proje).all()
        basvurular = self.db.query(modeller.YardimBasvurusu).all()
        bagislar = self.db.query(modeller.Bagis).all()

        ay_basi = _ay_basi(bugun)
        istatistikler = {
            "toplam_uye": sum(1 for k in kisiler if k.uyelik_turu and k.uyelik_turu != modeller.UyelikTuru.GONULLU),
            "aylik_bagis": round(sum(b.tutar for b in bagislar if b.tarih >= ay_basi), 2),
            "aktif_proje": sum(1 for p in projeler if p.durum == modeller.ProjeDurumu.DEVAM_EDIYOR),
            "bekleyen_basvuru": sum(
                1 for b in basvurular if b.durum in (BasvuruDurumu.BEKLEYEN, BasvuruDurumu.INCELENEN)
            ),
        }

        kisi_adlari = {k.id: k.ad_soyad for k in kisiler}

        def en_yeniler(kayitlar, tarih_alani):
            return sorted(kayitlar, key=lambda k: (getattr(k, tarih_alani), k.id), reverse=True)[:2]

        aktiviteler = [
            {
                "id": f"donation-{b.id}", "tip": "donation", "zaman": b.tarih,
                "aciklama": f"{kisi_adlari.get(b.bagisci_id, 'Bilinmeyen kişi')} bağış yaptı.",
                "tutar": format_currency(b.tutar, b.para_birimi),
                "link": "/bagis-yonetimi/tum-bagislar",
            }
            for b in en_yeniler(bagislar, "tarih")
        ] + [
            {
                "id": f"person-{k.id}", "tip": "person", "zaman": k.kayit_tarihi,
                "aciklama": f"Yeni kişi kaydı: {k.ad_soyad}",
                "link": f"/kisiler/{k.id}",
            }
            for k in en_yeniler(kisiler, "kayit_tarihi")
        ] + [
            {
                "id": f"application-{a.id}", "tip": "application", "zaman": a.basvuru_tarihi,
                "aciklama": f"{kisi_adlari.get(a.basvuru_sahibi_id, 'Bilinmeyen kişi')} yeni bir başvuru yaptı.",
                "link": f"/yardimlar/{a.id}",
            }
            for a in en_yeniler(basvurular, "basvuru_tarihi")
        ]
        # aynı gün içinde kayıt numarası büyük olan önce gelir
        aktiviteler.sort(key=lambda a: (a["zaman"], int(a["id"].rsplit("-", 1)[1])), reverse=True)

        aylik: Dict[str, float] = {}
        for b in bagislar:
            ay = b.tarih.strftime("%Y-%m")
            aylik[ay] = aylik.get(ay, 0.0) + b.tutar
        aylik_bagislar = [{"name": ay, "value": round(toplam, 2)} for ay, toplam in sorted(aylik.items())][-6:]

        return {
            "istatistikler": istatistikler,
            "son_aktiviteler": aktiviteler[:5],
            "aylik_bagislar": aylik_bagislar,
        }

    def bagis_istatistikleri(self, bugun: Optional[date] = None) -> Dict:
        bugun = bugun or date.today()
        sonuc = self.db.query(
            func.count(modeller.Bagis.id).label('adet'),
            func.coalesce(func.sum(modeller.Bagis.tutar), 0).label('toplam'),
            func.count(func.distinct(modeller.Bagis.bagisci_id)).label('bagisci_sayisi'),
        ).one()
        aylik_toplam = self.db.query(func.coalesce(func.sum(modeller.Bagis.tutar), 0)).filter(
            modeller.Bagis.tarih >= _ay_basi(bugun)
        ).scalar()

        return {
            "aylik_toplam": round(float(aylik_toplam), 2),
            "bagisci_sayisi": sonuc.bagisci_sayisi,
            "ortalama_bagis": round(float(sonuc.toplam) / sonuc.adet, 2) if sonuc.adet else 0.0,
            "toplam_bagis_sayisi": sonuc.adet,
            "toplam_tutar": round(float(sonuc.toplam), 2),
        }

    def analitik(self) -> Dict:
        kisiler = self.db.query(modeller.Kisi).all()
        basvurular = self.db.query(modeller.YardimBasvurusu).all()

        basvuru_sahipleri = {b.basvuru_sahibi_id for b in basvurular}
        uyruklar = Counter(
            (k.uyruk or "Belirtilmemiş") for k in kisiler if k.id in basvuru_sahipleri
        )
        durumlar = Counter(b.durum.value for b in basvurular)

        aylik: Dict[str, Dict[str, float]] = {}
        for bagis in self.db.query(modeller.Bagis).all():
            ay = aylik.setdefault(bagis.tarih.strftime("%Y-%m"), {"income": 0.0, "expense": 0.0})
            ay["income"] += bagis.tutar
        giderler = self.db.query(modeller.Odeme).filter(
            modeller.Odeme.durum == modeller.OdemeDurumu.TAMAMLANAN,
            modeller.Odeme.odeme_turu != modeller.OdemeTuru.BAGIS_GIRISI,
        ).all()
        for odeme in giderler:
            ay = aylik.setdefault(odeme.odeme_tarihi.strftime("%Y-%m"), {"income": 0.0, "expense": 0.0})
            ay["expense"] += odeme.tutar

        return {
            "toplam_kisi": len(kisiler),
            "yardim_alanlar_uyruk": [{"name": ad, "value": adet} for ad, adet in uyruklar.most_common()],
            "basvuru_durumlari": [{"name": ad, "value": adet} for ad, adet in durumlar.most_common()],
            "aylik_finans": [
                {"name": ay, "income": round(v["income"], 2), "expense": round(v["expense"], 2)}
                for ay, v in sorted(aylik.items())
            ][-12:],
        }
