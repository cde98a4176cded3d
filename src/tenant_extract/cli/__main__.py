from tenant_extract.cli import app

if __name__ == "__main__":
    app()
