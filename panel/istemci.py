import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.exceptions import ConnectionError, Timeout, RequestException

from .config import API_BASE_URL, API_TIMEOUT, PANEL_KULLANICI_ADI

# Logger kurulumu
logger = logging.getLogger(__name__)

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

Sonuc = Tuple[bool, str]


def _temiz_parametreler(params: Optional[Dict]) -> Dict:
    return {k: v for k, v in (params or {}).items() if v is not None}


class PanelIstemcisi:
    """
    Dernek API'si için HTTP istemcisi.

    Liste ve detay metotları hata durumunda ValueError fırlatır (veri kaynakları
    bu hatayı kullanıcıya gösterir). Basit kayıt işlemleri (ekle/guncelle/sil)
    (basarili, mesaj) ikilisi döndürür.
    """

    def __init__(self, api_base_url: str = API_BASE_URL, timeout: int = API_TIMEOUT, kullanici_adi: str = PANEL_KULLANICI_ADI):
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.kullanici_adi = kullanici_adi
        self.is_online = True

    def check_online_status(self) -> bool:
        """
        API bağlantısını kontrol eder ve self.is_online bayrağını ayarlar.
        """
        try:
            response = requests.get(f"{self.api_base_url}/sistem/status", timeout=5)
            response.raise_for_status()
            self.is_online = True
            logger.info("API bağlantısı başarıyla kuruldu.")
        except (ConnectionError, Timeout, RequestException) as e:
            logger.warning(f"API bağlantısı kurulamadı. Hata: {e}")
            self.is_online = False
        return self.is_online

    def _basliklar(self, ekstra: Optional[Dict] = None) -> Dict:
        api_headers = {}
        if self.kullanici_adi:
            api_headers["X-Kullanici"] = self.kullanici_adi
        if ekstra:
            api_headers.update(ekstra)
        return api_headers

    def _gonder(self, method: str, endpoint: str, params: Optional[Dict] = None, data: Optional[Any] = None,
                files=None) -> requests.Response:
        if not self.is_online and not self.check_online_status():
            logger.warning(f"Çevrimdışı mod: API isteği iptal edildi: {method} {endpoint}")
            raise ValueError(f"Çevrimdışı mod: '{endpoint}' API isteği yapılamadı.")

        url = f"{self.api_base_url}{endpoint}"
        try:
            if method.upper() in ("POST", "PUT") and files is None:
                response = requests.request(method, url, json=data, params=_temiz_parametreler(params),
                                            headers=self._basliklar(), timeout=self.timeout)
            else:
                response = requests.request(method, url, params=_temiz_parametreler(params), files=files,
                                            headers=self._basliklar(), timeout=self.timeout)
            response.raise_for_status()
            return response

        except requests.exceptions.HTTPError as http_err:
            error_message = f"HTTP Hatası: {http_err}"
            if http_err.response is not None and http_err.response.text:
                try:
                    error_detail = http_err.response.json().get('detail', http_err.response.text)
                    error_message = f"API Hatası: {error_detail}"
                except (json.JSONDecodeError, ValueError, AttributeError):
                    error_message = f"API Hatası: {http_err.response.text}"
            logger.error(f"API isteği sırasında HTTP hatası oluştu: {url}. Hata: {error_message}")
            raise ValueError(error_message)
        except (ConnectionError, Timeout, RequestException) as e:
            logger.error(f"API isteği sırasında bağlantı hatası oluştu: {url}. Hata: {e}")
            self.is_online = False
            raise ValueError(f"Bağlantı hatası: {e}")

    def _make_api_request(self, method: str, endpoint: str, params: Optional[Dict] = None, data: Optional[Any] = None, files=None):
        """
        API'ye kontrollü bir şekilde istek gönderir ve JSON gövdesini döndürür.
        Boş gövde için {} döner.
        """
        response = self._gonder(method, endpoint, params=params, data=data, files=files)
        if not response.text:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ValueError(f"Genel hata: API yanıtı çözümlenemedi ({e})")

    def _indir(self, endpoint: str, params: Optional[Dict] = None, method: str = "GET") -> bytes:
        return self._gonder(method, endpoint, params=params).content

    def _kayit_islemi(self, method: str, endpoint: str, basari_mesaji: str, hata_oneki: str, data: Optional[Dict] = None) -> Sonuc:
        try:
            self._make_api_request(method, endpoint, data=data)
            return True, basari_mesaji
        except ValueError as e:
            logger.error(f"{hata_oneki}: {e}")
            return False, f"{hata_oneki}: {e}"

    # --- KİŞİLER ---
    def kisi_listesi_al(self, arama: str = None, sayfa: int = 1, sayfa_boyutu: int = 25, siralama: str = None, **filtreler) -> Dict:
        params = {"arama": arama, "sayfa": sayfa, "sayfa_boyutu": sayfa_boyutu, "siralama": siralama, **filtreler}
        return self._make_api_request("GET", "/kisiler/", params=params)

    def kisi_getir(self, kisi_id: int) -> Dict:
        return self._make_api_request("GET", f"/kisiler/{kisi_id}")

    def kisi_ekle(self, data: dict) -> Sonuc:
        return self._kayit_islemi("POST", "/kisiler/", "Kişi başarıyla eklendi.", "Kişi eklenirken hata", data)

    def kisi_guncelle(self, kisi_id: int, data: dict) -> Sonuc:
        return self._kayit_islemi("PUT", f"/kisiler/{kisi_id}", "Kişi başarıyla güncellendi.", "Kişi güncellenirken hata", data)

    def kisi_sil(self, kisi_id: int) -> Sonuc:
        return self._kayit_islemi("DELETE", f"/kisiler/{kisi_id}", "Kişi başarıyla silindi.", "Kişi silinirken hata")

    def kisileri_toplu_sil(self, ids: List[int]) -> Sonuc:
        try:
            sonuc = self._make_api_request("POST", "/kisiler/toplu-sil", data={"ids": list(ids)})
            return True, sonuc.get("message", "Kişiler silindi.")
        except ValueError as e:
            logger.error(f"Kişiler silinirken hata: {e}")
            return False, f"Kişiler silinirken hata: {e}"

    def kisi_ozeti_al(self, kisi_id: int) -> str:
        return self._make_api_request("GET", f"/kisiler/{kisi_id}/ozet").get("ozet", "")

    def kisileri_ice_aktar(self, dosya_adi: str, icerik: bytes, kaydet: bool = True) -> Dict:
        files = {"dosya": (dosya_adi, icerik, "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")}
        return self._make_api_request("POST", "/kisiler/ice-aktar", params={"kaydet": str(kaydet).lower()}, files=files)

    # --- PROJELER ---
    def proje_listesi_al(self, arama: str = None, sayfa: int = 1, sayfa_boyutu: int = 25, siralama: str = None, **filtreler) -> Dict:
        params = {"arama": arama, "sayfa": sayfa, "sayfa_boyutu": sayfa_boyutu, "siralama": siralama, **filtreler}
        return self._make_api_request("GET", "/projeler/", params=params)

    def proje_getir(self, proje_id: int) -> Dict:
        return self._make_api_request("GET", f"/projeler/{proje_id}")

    def proje_ekle(self, data: dict) -> Sonuc:
        return self._kayit_islemi("POST", "/projeler/", "Proje başarıyla eklendi.", "Proje eklenirken hata", data)

    def proje_guncelle(self, proje_id: int, data: dict) -> Sonuc:
        return self._kayit_islemi("PUT", f"/projeler/{proje_id}", "Proje başarıyla güncellendi.", "Proje güncellenirken hata", data)

    def proje_sil(self, proje_id: int) -> Sonuc:
        return self._kayit_islemi("DELETE", f"/projeler/{proje_id}", "Proje başarıyla silindi.", "Proje silinirken hata")

    def gorev_ekle(self, proje_id: int, data: dict) -> Sonuc:
        return self._kayit_islemi("POST", f"/projeler/{proje_id}/gorevler", "Görev başarıyla eklendi.", "Görev eklenirken hata", data)

    def gorev_guncelle(self, proje_id: int, gorev_id: int, data: dict) -> Sonuc:
        return self._kayit_islemi("PUT", f"/projeler/{proje_id}/gorevler/{gorev_id}", "Görev başarıyla güncellendi.", "Görev güncellenirken hata", data)

    def gorev_sil(self, proje_id: int, gorev_id: int) -> Sonuc:
        return self._kayit_islemi("DELETE", f"/projeler/{proje_id}/gorevler/{gorev_id}", "Görev başarıyla silindi.", "Görev silinirken hata")

    # --- BAĞIŞLAR ---
    def bagis_listesi_al(self, arama: str = None, sayfa: int = 1, sayfa_boyutu: int = 25, siralama: str = None, **filtreler) -> Dict:
        params = {"arama": arama, "sayfa": sayfa, "sayfa_boyutu": sayfa_boyutu, "siralama": siralama, **filtreler}
        return self._make_api_request("GET", "/bagislar/", params=params)

    def bagis_getir(self, bagis_id: int) -> Dict:
        return self._make_api_request("GET", f"/bagislar/{bagis_id}")

    def bagis_ekle(self, data: dict) -> Sonuc:
        return self._kayit_islemi("POST", "/bagislar/", "Bağış başarıyla kaydedildi.", "Bağış kaydedilirken hata", data)

    def bagis_guncelle(self, bagis_id: int, data: dict) -> Sonuc:
        return self._kayit_islemi("PUT", f"/bagislar/{bagis_id}", "Bağış başarıyla güncellendi.", "Bağış güncellenirken hata", data)

    def bagis_sil(self, bagis_id: int) -> Sonuc:
        return self._kayit_islemi("DELETE", f"/bagislar/{bagis_id}", "Bağış başarıyla silindi.", "Bağış silinirken hata")

    def bagis_istatistikleri(self) -> Dict:
        return self._make_api_request("GET", "/bagislar/istatistikler")

    def sonraki_makbuz_no(self) -> str:
        return self._make_api_request("GET", "/bagislar/sonraki-makbuz-no").get("next_code", "")

    def bagis_makbuzu_indir(self, bagis_id: int) -> bytes:
        return self._indir(f"/bagislar/{bagis_id}/makbuz")

    # --- ÖDEMELER ---
    def odeme_listesi_al(self, arama: str = None, sayfa: int = 1, sayfa_boyutu: int = 25, siralama: str = None, **filtreler) -> Dict:
        params = {"arama": arama, "sayfa": sayfa, "sayfa_boyutu": sayfa_boyutu, "siralama": siralama, **filtreler}
        return self._make_api_request("GET", "/odemeler/", params=params)

    def odeme_getir(self, odeme_id: int) -> Dict:
        return self._make_api_request("GET", f"/odemeler/{odeme_id}")

    def odeme_ekle(self, data: dict) -> Sonuc:
        return self._kayit_islemi("POST", "/odemeler/", "Ödeme başarıyla kaydedildi.", "Ödeme kaydedilirken hata", data)

    def odeme_guncelle(self, odeme_id: int, data: dict) -> Sonuc:
        return self._kayit_islemi("PUT", f"/odemeler/{odeme_id}", "Ödeme başarıyla güncellendi.", "Ödeme güncellenirken hata", data)

    def odeme_sil(self, odeme_id: int) -> Sonuc:
        return self._kayit_islemi("DELETE", f"/odemeler/{odeme_id}", "Ödeme başarıyla silindi.", "Ödeme silinirken hata")

    # --- YARDIM BAŞVURULARI ---
    def basvuru_listesi_al(self, arama: str = None, sayfa: int = 1, sayfa_boyutu: int = 25, siralama: str = None, **filtreler) -> Dict:
        params = {"arama": arama, "sayfa": sayfa, "sayfa_boyutu": sayfa_boyutu, "siralama": siralama, **filtreler}
        return self._make_api_request("GET", "/yardim-basvurulari/", params=params)

    def basvuru_getir(self, basvuru_id: int) -> Dict:
        return self._make_api_request("GET", f"/yardim-basvurulari/{basvuru_id}")

    def basvuru_ekle(self, data: dict) -> Sonuc:
        return self._kayit_islemi("POST", "/yardim-basvurulari/", "Başvuru başarıyla oluşturuldu.", "Başvuru oluşturulurken hata", data)

    def basvuru_guncelle(self, basvuru_id: int, data: dict) -> Sonuc:
        return self._kayit_islemi("PUT", f"/yardim-basvurulari/{basvuru_id}", "Başvuru başarıyla güncellendi.", "Başvuru güncellenirken hata", data)

    def basvuru_sil(self, basvuru_id: int) -> Sonuc:
        return self._kayit_islemi("DELETE", f"/yardim-basvurulari/{basvuru_id}", "Başvuru başarıyla silindi.", "Başvuru silinirken hata")

    def baskan_onay_kuyrugu(self) -> List[Dict]:
        return self._make_api_request("GET", "/yardim-basvurulari/baskan-onayi-bekleyenler")

    def degerlendir(self, basvuru_id: int, durum: str, degerlendirme_notu: str = None, version: int = None) -> Dict:
        data = {"durum": durum, "degerlendirme_notu": degerlendirme_notu, "version": version}
        return self._make_api_request("POST", f"/yardim-basvurulari/{basvuru_id}/degerlendir", data=data)

    def baskan_karari(self, basvuru_id: int, onay: bool, baskan_onay_notu: str = None, version: int = None) -> Dict:
        data = {"onay": onay, "baskan_onay_notu": baskan_onay_notu, "version": version}
        return self._make_api_request("POST", f"/yardim-basvurulari/{basvuru_id}/baskan-karari", data=data)

    def odeme_olustur(self, basvuru_id: int, version: int = None) -> Dict:
        return self._make_api_request("POST", f"/yardim-basvurulari/{basvuru_id}/odeme", data={"version": version})

    def yorum_ekle(self, basvuru_id: int, icerik: str) -> Dict:
        return self._make_api_request("POST", f"/yardim-basvurulari/{basvuru_id}/yorumlar", data={"icerik": icerik})

    def dosya_ekle(self, basvuru_id: int, ad: str, tip: str = None, boyut: int = None) -> Dict:
        data = {"ad": ad, "tip": tip, "boyut": boyut}
        return self._make_api_request("POST", f"/yardim-basvurulari/{basvuru_id}/dosyalar", data=data)

    # --- RAPORLAR VE ARAMA ---
    def dashboard(self) -> Dict:
        return self._make_api_request("GET", "/raporlar/dashboard")

    def analitik(self) -> Dict:
        return self._make_api_request("GET", "/raporlar/analitik")

    def analitik_ozeti(self) -> Dict:
        return self._make_api_request("POST", "/raporlar/analitik/ozet")

    def akilli_arama(self, sorgu: str) -> Dict:
        return self._make_api_request("POST", "/arama/akilli", data={"sorgu": sorgu})

    def arama_onerileri(self, q: str = None, limit: int = 8) -> List[str]:
        return self._make_api_request("GET", "/arama/oneriler", params={"q": q, "limit": limit}).get("items", [])

    def denetim_kayitlari_al(self, sayfa: int = 1, sayfa_boyutu: int = 50, **filtreler) -> Dict:
        params = {"sayfa": sayfa, "sayfa_boyutu": sayfa_boyutu, **filtreler}
        return self._make_api_request("GET", "/denetim-kayitlari/", params=params)

    def excel_raporu_olustur(self, kaynak: str) -> Dict:
        return self._make_api_request("POST", f"/raporlar/excel/{kaynak}")

    def excel_raporu_indir(self, kaynak: str) -> bytes:
        rapor = self.excel_raporu_olustur(kaynak)
        return self._indir(f"/raporlar/indir/{rapor['dosya_adi']}")

    def pdf_raporu_indir(self, kaynak: str) -> bytes:
        return self._indir(f"/raporlar/pdf/{kaynak}")

    def secenekler(self) -> Dict[str, List[str]]:
        return self._make_api_request("GET", "/sistem/secenekler")
