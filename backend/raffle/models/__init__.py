from .sellers import Seller, SellerSession
from .tickets import Ticket, TicketNumber, IssuanceLock
from .prizes import Prize

__all__ = [
    'Seller', 'SellerSession',
    'Ticket', 'TicketNumber', 'IssuanceLock',
    'Prize',
]
