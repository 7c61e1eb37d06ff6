from stow_desktop.cli.desktop.commands import app

if __name__ == "__main__":
    app()
