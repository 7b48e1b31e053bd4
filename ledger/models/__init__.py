from .payment import Payment
