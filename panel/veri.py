"""
Panel sayfalarının kullandığı önbellekli veri kaynakları.

Her kaynak {data, is_loading, error, refresh} arayüzünü sunar: veri ilk
erişimde yüklenir, refresh() yeniden çeker, başarısız yenilemede önceki veri
korunur ve hata mesajı error alanına yazılır.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from dernek_api.liste import where

from .istemci import PanelIstemcisi

logger = logging.getLogger(__name__)

SAYFA_BOYUTU = 200


class VeriKaynagi:
    def __init__(self, fetcher: Callable[[], Any], ad: str = "veri"):
        self._fetcher = fetcher
        self.ad = ad
        self._data = None
        self._yuklendi = False
        self.is_loading = False
        self.error: Optional[str] = None

    @property
    def data(self):
        if not self._yuklendi and not self.is_loading:
            self.refresh()
        return self._data

    def refresh(self):
        self.is_loading = True
        try:
            self._data = self._fetcher()
            self.error = None
        except Exception as e:
            logger.error(f"{self.ad} yüklenirken hata: {e}")
            self.error = f"Veri yüklenemedi: {e}"
        finally:
            self._yuklendi = True
            self.is_loading = False
        return self._data


class BilesikVeriKaynagi:
    """Birden fazla kaynağı tek bir sayfa kaynağı olarak birleştirir."""

    def __init__(self, **kaynaklar: VeriKaynagi):
        self.kaynaklar = kaynaklar

    @property
    def data(self) -> Dict[str, Any]:
        return {ad: kaynak.data for ad, kaynak in self.kaynaklar.items()}

    @property
    def is_loading(self) -> bool:
        return any(k.is_loading for k in self.kaynaklar.values())

    @property
    def error(self) -> Optional[str]:
        for kaynak in self.kaynaklar.values():
            if kaynak.error:
                return kaynak.error
        return None

    def refresh(self) -> Dict[str, Any]:
        for kaynak in self.kaynaklar.values():
            kaynak.refresh()
        return {ad: kaynak._data for ad, kaynak in self.kaynaklar.items()}


def _tum_sayfalar(liste_fonksiyonu: Callable[..., Dict], **filtreler) -> List[Dict]:
    # Sunucu sayfalamasını dolaşarak tüm kayıtları toplar
    kayitlar: List[Dict] = []
    sayfa = 1
    while True:
        yanit = liste_fonksiyonu(sayfa=sayfa, sayfa_boyutu=SAYFA_BOYUTU, **filtreler)
        kayitlar.extend(yanit.get("items", []))
        if sayfa >= yanit.get("total_pages", 1):
            return kayitlar
        sayfa += 1


def kisiler_kaynagi(istemci: PanelIstemcisi, **filtreler) -> VeriKaynagi:
    return VeriKaynagi(lambda: _tum_sayfalar(istemci.kisi_listesi_al, **filtreler), "Kişiler")


def projeler_kaynagi(istemci: PanelIstemcisi, **filtreler) -> VeriKaynagi:
    return VeriKaynagi(lambda: _tum_sayfalar(istemci.proje_listesi_al, **filtreler), "Projeler")


def odemeler_kaynagi(istemci: PanelIstemcisi, **filtreler) -> VeriKaynagi:
    return VeriKaynagi(lambda: _tum_sayfalar(istemci.odeme_listesi_al, **filtreler), "Ödemeler")


def bagislar_kaynagi(istemci: PanelIstemcisi, **filtreler) -> VeriKaynagi:
    return VeriKaynagi(lambda: _tum_sayfalar(istemci.bagis_listesi_al, **filtreler), "Bağışlar")


def denetim_kayitlari_kaynagi(istemci: PanelIstemcisi, **filtreler) -> VeriKaynagi:
    return VeriKaynagi(lambda: _tum_sayfalar(istemci.denetim_kayitlari_al, **filtreler), "Denetim kayıtları")


def basvurular_kaynagi(istemci: PanelIstemcisi, **filtreler) -> BilesikVeriKaynagi:
    return BilesikVeriKaynagi(
        basvurular=VeriKaynagi(lambda: _tum_sayfalar(istemci.basvuru_listesi_al, **filtreler), "Yardım başvuruları"),
        kisiler=kisiler_kaynagi(istemci),
    )


def bagis_yonetimi_kaynagi(istemci: PanelIstemcisi) -> BilesikVeriKaynagi:
    return BilesikVeriKaynagi(
        bagislar=bagislar_kaynagi(istemci),
        kisiler=kisiler_kaynagi(istemci),
        projeler=projeler_kaynagi(istemci),
    )


def _uye_mi(kisi: Dict) -> bool:
    return bool(kisi.get("uyelik_turu")) and kisi.get("uyelik_turu") != "Gönüllü"


def uye_yonetimi_kaynagi(istemci: PanelIstemcisi) -> VeriKaynagi:
    return VeriKaynagi(lambda: where(_tum_sayfalar(istemci.kisi_listesi_al), _uye_mi), "Üyeler")


def dashboard_kaynagi(istemci: PanelIstemcisi) -> VeriKaynagi:
    return VeriKaynagi(istemci.dashboard, "Dashboard")
