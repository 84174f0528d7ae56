from appmanager.cli import app

app()
