from chatcmd.cli.commands import app

app()
