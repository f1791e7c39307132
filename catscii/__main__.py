from catscii.main import run

run()
