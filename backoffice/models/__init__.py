from backoffice.models.tenant import Tenant
from backoffice.models.customer import Customer
from backoffice.models.customer_address import CustomerAddress
