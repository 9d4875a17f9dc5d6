from payrelay.services.checkout.main import run

run()
