"""
Akıllı arama ve yapay zeka özetleri.

OPENROUTER_API_KEY tanımlıysa sorgu bir dil modeline gönderilir; anahtar yoksa
veya çağrı başarısız olursa kural tabanlı/deterministik sonuçlar döner.
"""
import json
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests
from requests.exceptions import RequestException

from .bicim import format_date
from .config import settings
from .liste import text_filter, tr_lower

logger = logging.getLogger(__name__)

VARSAYILAN_ONERILER = [
    "Ankara'daki aktif gönüllüler",
    "İstanbul'daki pasif gönüllüler",
    "Onaylanan acil yardım başvuruları",
    "Onaylanan eğitim yardımları",
    "Onaylanan sağlık yardımları",
    "Tamamlanmış projeler",
    "Nakit bağışlar",
    "Kredi kartı ile yapılan bağışlar",
    "Online bağışlar",
    "Ayni bağışlar",
    "Kişilerde Ahmet ara",
    "Üyeleri listele",
]

_SEHIRLER = {"ankara": "Ankara", "istanbul": "İstanbul", "izmir": "İzmir"}
_KISI_ANAHTARLARI = ("kiş", "insan", "üye")
_KISI_DOLGU_KELIMELERI = {"ara", "bul", "listele", "göster", "getir"}


class YapayZekaHatasi(Exception):
    pass


def _openrouter_istegi(sistem: str, kullanici: str, sicaklik: float = 0.2, json_yaniti: bool = True) -> str:
    if not settings.OPENROUTER_API_KEY:
        raise YapayZekaHatasi("OpenRouter API anahtarı bulunamadı (OPENROUTER_API_KEY).")

    govde: Dict[str, Any] = {
        "model": settings.OPENROUTER_MODEL,
        "messages": [
            {"role": "system", "content": sistem},
            {"role": "user", "content": kullanici},
        ],
        "temperature": sicaklik,
    }
    if json_yaniti:
        govde["response_format"] = {"type": "json_object"}

    try:
        response = requests.post(
            settings.OPENROUTER_URL,
            json=govde,
            headers={
                "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
                "Content-Type": "application/json",
                "X-Title": "Dernek Yönetim Paneli",
            },
            timeout=settings.LLM_TIMEOUT,
        )
        response.raise_for_status()
        icerik = response.json()["choices"][0]["message"]["content"]
    except (RequestException, KeyError, IndexError, TypeError, ValueError) as e:
        raise YapayZekaHatasi(f"OpenRouter hata: {e}") from e

    if not isinstance(icerik, str) or not icerik.strip():
        raise YapayZekaHatasi("OpenRouter boş yanıt döndürdü.")
    return icerik.strip()


def _json_coz(icerik: str) -> Dict[str, Any]:
    try:
        veri = json.loads(icerik)
    except json.JSONDecodeError as e:
        raise YapayZekaHatasi(f"Model geçerli JSON döndürmedi: {e}") from e
    if not isinstance(veri, dict):
        raise YapayZekaHatasi("Model JSON nesnesi döndürmedi.")
    return veri


def kural_tabanli_gezinme(sorgu: str) -> Dict[str, Any]:
    q = tr_lower(sorgu or "")

    if "gönüllü" in q:
        filtreler = {}
        sehir = re.search(r"ankara|istanbul|izmir", q)
        if sehir:
            filtreler["sehir"] = _SEHIRLER[sehir.group(0)]
        if "aktif" in q:
            filtreler["durum"] = "Aktif"
        elif "pasif" in q:
            filtreler["durum"] = "Pasif"
        return {"path": "/gonulluler", "filters": filtreler, "explanation": "Gönüllüler sayfasına yönlendiriliyor."}

    if "yardım" in q and ("onaylanan" in q or "onaylı" in q):
        filtreler = {"durum": "Onaylanan"}
        if "acil" in q:
            filtreler["basvuruTuru"] = "Acil Yardım"
        elif "eğitim" in q:
            filtreler["basvuruTuru"] = "Eğitim Yardımı"
        elif "sağlık" in q:
            filtreler["basvuruTuru"] = "Sağlık Yardımı"
        return {"path": "/yardimlar", "filters": filtreler, "explanation": "Onaylanan yardım başvuruları gösteriliyor."}

    if "proje" in q and any(k in q for k in ("tamamlanmış", "tamamlandi", "tamamlandı")):
        return {"path": "/projeler", "filters": {"status": "Tamamlandı"}, "explanation": "Tamamlanmış projeler listeleniyor."}

    if "bağış" in q:
        filtreler = {}
        for anahtar, tur in (("nakit", "Nakit"), ("kredi", "Kredi Kartı"), ("online", "Online"), ("ayni", "Ayni Yardım")):
            if anahtar in q:
                filtreler["bagisTuru"] = tur
                break
        return {"path": "/bagis-yonetimi/tum-bagislar", "filters": filtreler, "explanation": "Bağış listesi gösteriliyor."}

    if any(k in q for k in _KISI_ANAHTARLARI):
        kelimeler = re.findall(r"[A-Za-zÇĞİÖŞÜçğıöşü]+", sorgu)
        arananlar = [
            k for k in kelimeler
            if not tr_lower(k).startswith(_KISI_ANAHTARLARI) and tr_lower(k) not in _KISI_DOLGU_KELIMELERI
        ]
        filtreler = {"searchTerm": " ".join(arananlar)} if arananlar else {}
        return {"path": "/kisiler", "filters": filtreler, "explanation": "Kişilerde arama yapılıyor."}

    return {"path": "/", "filters": {}, "explanation": "Dashboard görüntüleniyor."}


def _gezinme_dogrula(veri: Dict[str, Any]) -> Dict[str, Any]:
    path = veri.get("path")
    aciklama = veri.get("explanation")
    if not isinstance(path, str) or not path.startswith("/"):
        raise YapayZekaHatasi("Model geçerli bir 'path' döndürmedi.")
    if not isinstance(aciklama, str):
        raise YapayZekaHatasi("Model 'explanation' alanını döndürmedi.")
    filtreler = veri.get("filters") or {}
    if not isinstance(filtreler, dict):
        raise YapayZekaHatasi("Model 'filters' alanını nesne olarak döndürmedi.")
    return {
        "path": path,
        "filters": {str(k): str(v) for k, v in filtreler.items() if v is not None},
        "explanation": aciklama,
    }


def gezinme_sorgusu(sorgu: str) -> Dict[str, Any]:
    """Serbest metin sorguyu {path, filters, explanation} yönlendirmesine çevirir."""
    sistem = "Sen Türkçe konuşan bir yönlendirme yardımcısısın. Yalnızca geçerli JSON döndür."
    kullanici = (
        "Kullanıcı sorgusunu yorumla ve aşağıdaki yapıda JSON üret:\n"
        '{\n  "path": string,\n  "filters"?: { [key: string]: string },\n  "explanation": string\n}\n'
        f'Kullanıcı sorgusu: "{sorgu}"\n'
        "Sadece geçerli JSON döndür."
    )
    try:
        return _gezinme_dogrula(_json_coz(_openrouter_istegi(sistem, kullanici)))
    except YapayZekaHatasi as e:
        logger.warning(f"Akıllı arama modeli kullanılamadı, kural tabanlı yönlendirme kullanılacak: {e}")
        return kural_tabanli_gezinme(sorgu)


def yonlendirme_url(sonuc: Dict[str, Any]) -> str:
    filtreler = sonuc.get("filters") or {}
    if not filtreler:
        return sonuc["path"]
    return f"{sonuc['path']}?{urlencode(filtreler)}"


def oneriler(sorgu: Optional[str] = None, limit: int = 8) -> List[str]:
    return text_filter(VARSAYILAN_ONERILER, sorgu, [lambda s: s])[:limit]


VARSAYILAN_ANALITIK_OZET = {
    "ozet": (
        "Son dönemde kayıtlı kişi sayısında istikrarlı artış gözleniyor. Yardım başvuruları bekleyen "
        "ve incelenen durumlarında yoğunlaşıyor. Gelir-gider akışında genel denge korunuyor."
    ),
    "olumlu_egilimler": [
        "Aylık bağışlarda önceki döneme göre artış eğilimi var.",
        "Projelerde tamamlanma oranı yükseliyor.",
        "Gönüllü katılımında sürdürülebilir artış mevcut.",
    ],
    "dikkat_alanlari": [
        "Bekleyen başvuruların sonuçlandırma süresi kısaltılmalı.",
        "Ayni yardım stok alt limitleri gözden geçirilmeli.",
        "Kur etkisi için bütçe senaryoları güçlendirilmeli.",
    ],
    "eylem_onerileri": [
        "Yüksek etki potansiyeli olan projelere öncelik verin.",
        "Değerlendirme iş akışlarını sadeleştirerek sonuçlandırma süresini düşürün.",
        "Düzenli bağışçı programı için iletişim kampanyaları planlayın.",
    ],
}


def analitik_ozet(girdi: Dict[str, Any]) -> Dict[str, Any]:
    sistem = "Sen bir Türkçe konuşan veri analistisin. Yalnızca geçerli JSON döndür."
    kullanici = (
        "Aşağıdaki verileri analiz ederek Türkçe bir özet üret ve JSON döndür.\n"
        "Veriler:\n"
        f"- Kayıtlı kişi sayısı: {girdi.get('toplam_kisi', 0)}\n"
        f"- Uyruklara göre yardım alanlar: {json.dumps(girdi.get('yardim_alanlar_uyruk', []), ensure_ascii=False)}\n"
        f"- Başvuru durumları: {json.dumps(girdi.get('basvuru_durumlari', []), ensure_ascii=False)}\n"
        f"- Aylık gelir/gider: {json.dumps(girdi.get('aylik_finans', []), ensure_ascii=False)}\n\n"
        "JSON şeması:\n"
        '{\n  "ozet": string,\n  "olumlu_egilimler": string[],\n  "dikkat_alanlari": string[],\n'
        '  "eylem_onerileri": string[]\n}\n\n'
        "Sadece geçerli JSON döndür, başka metin ekleme."
    )
    try:
        veri = _json_coz(_openrouter_istegi(sistem, kullanici))
        return {
            "ozet": str(veri["ozet"]),
            "olumlu_egilimler": [str(s) for s in veri.get("olumlu_egilimler", [])],
            "dikkat_alanlari": [str(s) for s in veri.get("dikkat_alanlari", [])],
            "eylem_onerileri": [str(s) for s in veri.get("eylem_onerileri", [])],
        }
    except (YapayZekaHatasi, KeyError, TypeError) as e:
        logger.warning(f"Analitik özet modeli kullanılamadı, varsayılan özet kullanılacak: {e}")
        return {anahtar: (list(deger) if isinstance(deger, list) else deger) for anahtar, deger in VARSAYILAN_ANALITIK_OZET.items()}


def kisi_ozeti(
    ad_soyad: str,
    kayit_tarihi: Optional[date],
    durum: str,
    ozel_durumlar: Optional[List[str]] = None,
    notlar: Optional[str] = None,
) -> str:
    tarih = format_date(kayit_tarihi)
    ozel = ", ".join(ozel_durumlar or []) or "Yok"
    not_metni = (notlar or "Ek not yok").rstrip(".")

    sistem = "Sen Türkçe konuşan bir sosyal yardım vaka asistanısın. Kısa, net bir paragraf döndür."
    kullanici = (
        "Aşağıdaki kişi bilgilerine dayanarak Türkçe tek paragraf bir özet yaz:\n"
        f"Ad Soyad: {ad_soyad}\n"
        f"Kayıt Tarihi: {tarih}\n"
        f"Durum: {durum}\n"
        f"Özel Durumlar: {ozel}\n"
        f"Notlar: {not_metni}"
    )
    try:
        return _openrouter_istegi(sistem, kullanici, sicaklik=0.3, json_yaniti=False)
    except YapayZekaHatasi as e:
        logger.warning(f"Kişi özeti modeli kullanılamadı, varsayılan özet kullanılacak: {e}")
        return (
            f"{ad_soyad} adlı kişi {tarih} tarihinde sisteme kaydedilmiştir. Güncel durumu: {durum}. "
            f"Özel durumları: {ozel}. Notlar: {not_metni}. Kişinin durumuna ilişkin değerlendirme ve "
            "yönlendirmeler ilgili birimlerce takip edilmelidir."
        )
