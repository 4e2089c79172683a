import argparse
import subprocess
import sys

python_executable = sys.executable


def start_api_server(port: int = 8001, reload: bool = False):
    """
    API sunucusunu uvicorn ile başlatır ve kapanana kadar bekler.
    """
    command = [python_executable, "-m", "uvicorn", "dernek_api.api_ana:app", "--port", str(port)]
    if reload:
        command.append("--reload")

    print(f"API sunucusu başlatılıyor: http://127.0.0.1:{port}")
    try:
        return subprocess.run(command).returncode
    except KeyboardInterrupt:
        print("API sunucusu durduruldu.")
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Dernek Yönetim Paneli API sunucusunu başlatır.")
    parser.add_argument("--port", type=int, default=8001)
    parser.add_argument("--reload", action="store_true", help="Kod değişikliklerinde sunucuyu yeniden başlatır")
    args = parser.parse_args()
    sys.exit(start_api_server(args.port, args.reload))
