from enum import Enum


class FlowState(str, Enum):
    BROWSING = "browsing"
    COLLECTING_NAME = "collecting_name"
    COLLECTING_STREET = "collecting_street"
    COLLECTING_NUMBER = "collecting_number"
    COLLECTING_NEIGHBORHOOD = "collecting_neighborhood"
    COLLECTING_CITY = "collecting_city"
    COLLECTING_ZIPCODE = "collecting_zipcode"
    COLLECTING_COMPLEMENT = "collecting_complement"
    COLLECTING_REFERENCE = "collecting_reference"
    COLLECTING_PAYMENT = "collecting_payment"
    CONFIRMING_ORDER = "confirming_order"
    ORDER_COMPLETED = "order_completed"


# Ordem linear do checkout: estado -> (campo coletado, próximo estado)
FIELD_STEPS: dict[FlowState, tuple[str, FlowState]] = {
    FlowState.COLLECTING_NAME: ("name", FlowState.COLLECTING_STREET),
    FlowState.COLLECTING_STREET: ("street", FlowState.COLLECTING_NUMBER),
    FlowState.COLLECTING_NUMBER: ("number", FlowState.COLLECTING_NEIGHBORHOOD),
    FlowState.COLLECTING_NEIGHBORHOOD: ("neighborhood", FlowState.COLLECTING_CITY),
    FlowState.COLLECTING_CITY: ("city", FlowState.COLLECTING_ZIPCODE),
    FlowState.COLLECTING_ZIPCODE: ("zip_code", FlowState.COLLECTING_COMPLEMENT),
    FlowState.COLLECTING_COMPLEMENT: ("complement", FlowState.COLLECTING_REFERENCE),
    FlowState.COLLECTING_REFERENCE: ("reference", FlowState.COLLECTING_PAYMENT),
}

PAYMENT_TYPES = {
    "1": "PaymentType.cash",
    "2": "PaymentType.creditcard",
    "3": "PaymentType.debitcard",
    "4": "PaymentType.pix",
}

PAYMENT_LABELS = {
    "PaymentType.cash": "Dinheiro",
    "PaymentType.creditcard": "Cartao Credito",
    "PaymentType.debitcard": "Cartao Debito",
    "PaymentType.pix": "PIX",
}

DEFAULT_PAYMENT_TYPE = "PaymentType.cash"
