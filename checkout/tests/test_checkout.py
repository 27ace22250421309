from datetime import datetime, timezone as dt_timezone
from urllib.parse import unquote

from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from checkout.cart import Cart, CartItem, CartStore, clear_store
from checkout.notifications import WhatsAppChannel, format_price, payment_method_label
from checkout.storage import SessionCartStorage
from store.models import Category, Product, Store, Variant
from store.services.catalog import CatalogService

CUSTOMER = {
    'name': "Budi Santoso",
    'email': "budi@example.com",
    'phone': "08123456789",
    'province': "Jawa Barat",
    'regency': "Bandung",
    'district': "Coblong",
    'village': "Dago",
    'postal_code': "40135",
    'payment_method': "gopay",
}


def sample_summary():
    return {
        'store': {'id': 1, 'name': "Fashion Store", 'slug': "fashion-store", 'wa_number': "628123456789"},
        'items': [
            {'name': "Classic T-Shirt", 'sku': "CLASSI-BLU-M-0427", 'quantity': 2, 'unit_price': 95000, 'subtotal': 190000},
            {'name': "Denim Jacket", 'sku': None, 'quantity': 1, 'unit_price': 350000, 'subtotal': 350000},
        ],
        'subtotal': 540000,
        'customer': dict(CUSTOMER),
    }


class FakeSession(dict):
    session_key = None
    modified = False


# ------------------------------------------
# WhatsApp channel
# ------------------------------------------
@override_settings(TIME_ZONE='UTC', CHECKOUT_WHATSAPP_BASE_URL='https://wa.me')
class WhatsAppChannelTests(SimpleTestCase):

    def test_format_price(self):
        self.assertEqual(format_price(95000), "Rp 95.000")
        self.assertEqual(format_price(1250000), "Rp 1.250.000")
        self.assertEqual(format_price(0), "Rp 0")

    def test_payment_method_label(self):
        self.assertEqual(payment_method_label('bank_transfer'), "Bank Transfer")
        self.assertEqual(payment_method_label('cod'), "cod")

    def test_message_layout(self):
        ordered_at = datetime(2025, 3, 1, 9, 30, tzinfo=dt_timezone.utc)
        message = WhatsAppChannel().format_message(sample_summary(), ordered_at=ordered_at)
        lines = message.split("\n")

        self.assertEqual(lines[0], "*NEW ORDER - FASHION STORE*")
        self.assertIn("- Name: Budi Santoso", lines)
        self.assertIn("Dago, Coblong", lines)
        self.assertIn("Bandung, Jawa Barat", lines)
        self.assertIn("*Payment Method:* GoPay", lines)
        self.assertIn("1. *Classic T-Shirt*", lines)
        self.assertIn("   - Price: Rp 95.000", lines)
        self.assertIn("   - SKU: -", lines)
        self.assertIn("*Total Amount:* Rp 540.000", lines)
        self.assertIn("*Order Date:* 01/03/2025 09:30", lines)

    def test_build_url_keeps_digits_and_encodes_text(self):
        url = WhatsAppChannel().build_url("+62 812-3456-789", "Hi there\n& bye")
        self.assertEqual(url, "https://wa.me/628123456789?text=Hi%20there%0A%26%20bye")

    def test_custom_base_url(self):
        url = WhatsAppChannel(base_url="https://api.whatsapp.com/send/").build_url("628123", "x")
        self.assertEqual(url, "https://api.whatsapp.com/send/628123?text=x")

    def test_send_returns_link_to_store(self):
        url = WhatsAppChannel().send(sample_summary())
        self.assertTrue(url.startswith("https://wa.me/628123456789?text="))
        self.assertIn("*NEW ORDER - FASHION STORE*", unquote(url))


# ------------------------------------------
# Session storage
# ------------------------------------------
@override_settings(CART_SESSION_KEY='cart')
class SessionCartStorageTests(SimpleTestCase):

    def setUp(self):
        item = CartItem(id="1-2", product_id=1, variant_id=2, store_id=3, quantity=2, price=5000)
        self.cart = Cart(stores=(CartStore(id=3, name="Shop", items=(item,)),))

    def test_round_trip(self):
        session = FakeSession()
        storage = SessionCartStorage(session)
        storage.save(self.cart)
        self.assertTrue(session.modified)
        self.assertEqual(session['cart']['total_amount'], 10000)
        self.assertEqual(SessionCartStorage(session).load(), self.cart)

    def test_empty_cart_removes_the_key(self):
        session = FakeSession(cart=self.cart.to_dict())
        SessionCartStorage(session).save(Cart())
        self.assertNotIn('cart', session)

    def test_unchanged_transition_is_not_saved(self):
        session = FakeSession()
        cart = SessionCartStorage(session).apply(clear_store, 99)
        self.assertTrue(cart.is_empty)
        self.assertFalse(session.modified)

    def test_unreadable_cart_is_reset(self):
        session = FakeSession(cart={'stores': [{'items': [{}]}]})
        with self.assertLogs('checkout.storage', level='WARNING'):
            cart = SessionCartStorage(session).load()
        self.assertTrue(cart.is_empty)
        self.assertNotIn('cart', session)


# ------------------------------------------
# Cart and checkout endpoints
# ------------------------------------------
class CheckoutAPITestCase(APITestCase):

    def setUp(self):
        self.store = Store.objects.create(name="Fashion Store", wa_number="628123456789")
        category = Category.objects.create(name="T-Shirts")
        self.product = CatalogService.create_product(self.store, {
            'name': "Classic T-Shirt",
            'base_price': 100000,
            'categories': [category.pk],
            'option_types': [
                {'name': 'Color', 'values': ['Blue', 'Black']},
                {'name': 'Size', 'values': ['M', 'L']},
            ],
            'default_stock': 2,
        })
        self.color = self.product.option_types.get(name='Color')
        self.size = self.product.option_types.get(name='Size')
        self.blue = self.color.values.get(name='Blue')
        self.medium = self.size.values.get(name='M')
        self.blue_m = Variant.objects.filter(product=self.product, option_values=self.blue).get(option_values=self.medium)

    def add(self, quantity=1, **payload):
        payload.setdefault('product_id', self.product.pk)
        if 'selection' not in payload:
            payload.setdefault('variant_id', self.blue_m.pk)
        payload['quantity'] = quantity
        return self.client.post('/api/checkout/cart/items/', payload, format='json')

    def checkout(self, store_id=None):
        return self.client.post(
            '/api/checkout/',
            {'store_id': store_id or self.store.pk, 'customer': CUSTOMER},
            format='json'
        )


class CartEndpointTests(CheckoutAPITestCase):

    def test_empty_cart(self):
        resp = self.client.get('/api/checkout/cart/')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data'], {'stores': [], 'total_items': 0, 'total_amount': 0})

    def test_adding_twice_aggregates(self):
        self.assertEqual(self.add().status_code, status.HTTP_201_CREATED)
        resp = self.add()
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        cart = self.client.get('/api/checkout/cart/').data['data']
        [store] = cart['stores']
        [item] = store['items']
        self.assertEqual(item['id'], f"{self.product.pk}-{self.blue_m.pk}")
        self.assertEqual(item['quantity'], 2)
        self.assertEqual(cart['total_amount'], 200000)

    def test_quantity_beyond_stock(self):
        self.add(quantity=2)
        resp = self.add()
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error_code'], 'out_of_stock')

    def test_sold_out_variant(self):
        Variant.objects.filter(pk=self.blue_m.pk).update(stock=0)
        resp = self.add()
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error_code'], 'out_of_stock')

    def test_incomplete_selection(self):
        resp = self.add(selection={str(self.color.pk): self.blue.pk})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error_code'], 'incomplete_selection')

    def test_complete_selection(self):
        resp = self.add(selection={str(self.color.pk): self.blue.pk, str(self.size.pk): self.medium.pk})
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        item = resp.data['data']['stores'][0]['items'][0]
        self.assertEqual(item['variant_id'], self.blue_m.pk)

    def test_combination_without_a_variant(self):
        black = self.color.values.get(name='Black')
        Variant.objects.filter(product=self.product, option_values=black).filter(option_values=self.medium).delete()
        resp = self.add(selection={str(self.color.pk): black.pk, str(self.size.pk): self.medium.pk})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error_code'], 'validation_error')
        self.assertEqual(self.client.get('/api/checkout/cart/').data['data']['total_items'], 0)

    def test_draft_product_cannot_be_added(self):
        Product.objects.filter(pk=self.product.pk).update(status=Product.Status.DRAFT)
        self.assertEqual(self.add().status_code, status.HTTP_404_NOT_FOUND)

    def test_update_and_remove_item(self):
        self.add()
        item_id = f"{self.product.pk}-{self.blue_m.pk}"
        url = f'/api/checkout/cart/stores/{self.store.pk}/items/{item_id}/'

        resp = self.client.patch(url, {'quantity': 2}, format='json')
        self.assertEqual(resp.data['data']['total_items'], 2)

        resp = self.client.patch(url, {'quantity': 3}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

        resp = self.client.delete(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['stores'], [])

        self.assertEqual(self.client.delete(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_clear_store_and_cart(self):
        self.add()
        resp = self.client.delete(f'/api/checkout/cart/stores/{self.store.pk}/')
        self.assertEqual(resp.data['data']['total_items'], 0)

        self.add()
        resp = self.client.delete('/api/checkout/cart/')
        self.assertEqual(resp.data['data']['total_items'], 0)


class CheckoutEndpointTests(CheckoutAPITestCase):

    def test_checkout_builds_whatsapp_link_and_clears_store(self):
        self.add(quantity=2)
        resp = self.checkout()

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        data = resp.data['data']
        self.assertTrue(data['whatsapp_url'].startswith("https://wa.me/628123456789?text="))
        self.assertEqual(data['store_name'], "Fashion Store")
        self.assertEqual(data['order_total'], 200000)
        self.assertIn("Budi Santoso", unquote(data['whatsapp_url']))

        cart = self.client.get('/api/checkout/cart/').data['data']
        self.assertEqual(cart['stores'], [])

    def test_stock_is_checked_again(self):
        self.add(quantity=2)
        Variant.objects.filter(pk=self.blue_m.pk).update(stock=1)

        resp = self.checkout()
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error_code'], 'out_of_stock')
        self.assertEqual(self.client.get('/api/checkout/cart/').data['data']['total_items'], 2)

    def test_vanished_variant(self):
        self.add()
        Variant.objects.filter(pk=self.blue_m.pk).delete()

        resp = self.checkout()
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['error_code'], 'not_found')

    def test_nothing_to_check_out(self):
        resp = self.checkout()
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_details_are_required(self):
        self.add()
        resp = self.client.post(
            '/api/checkout/', {'store_id': self.store.pk, 'customer': {'name': "Budi"}}, format='json'
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(resp.data['success'])
