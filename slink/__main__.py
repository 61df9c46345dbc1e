from slink.cli import app_entry

if __name__ == "__main__":
    app_entry()
