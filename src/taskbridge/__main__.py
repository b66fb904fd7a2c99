from taskbridge.cli.main import app

app()
