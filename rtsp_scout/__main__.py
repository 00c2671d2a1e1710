from rtsp_scout.main import run

run()
