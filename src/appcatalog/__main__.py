from appcatalog.cli.app import app

app()
