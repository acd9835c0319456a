import streamlit as st

from frontend.gui.components.common import (
    call_api,
    format_price,
    get_api,
    get_session,
    to_dataframe,
    init_monitoring,
)

st.set_page_config(page_title="Products", layout="wide")
st.title("Products")

api = get_api()
monitoring = init_monitoring()
categories = call_api(api.get_categories(), "products.categories", monitoring) or []
names = ["(all)"] + [c.get("name", "") for c in categories]

c1, c2, c3 = st.columns([2, 3, 1])
with c1:
    category = st.selectbox("Category", names)
with c2:
    keyword = st.text_input("Search", "")
with c3:
    featured_only = st.checkbox("Featured only", value=False)

filters = {
    "category": None if category == "(all)" else category,
    "keyword": keyword.strip() or None,
    "featured": "true" if featured_only else None,
}
products = call_api(api.get_products(**filters), "products.list", monitoring)
if products is None:
    st.stop()
if not products:
    st.warning("Nessun prodotto trovato.")
    st.stop()

df = to_dataframe(products, columns=["_id", "name", "category", "price", "countInStock", "featured"])
df["price"] = df["price"].apply(format_price)
st.dataframe(df, use_container_width=True, hide_index=True)

# Dettaglio + aggiunta al carrello
by_label = {f"{p.get('name')} ({format_price(p.get('price'))})": p for p in products}
choice = st.selectbox("Product details", list(by_label.keys()))
product = by_label[choice]

with st.container(border=True):
    d1, d2 = st.columns([1, 2])
    with d1:
        if product.get("imageUrl"):
            st.image(product["imageUrl"], use_container_width=True)
    with d2:
        st.subheader(product.get("name", ""))
        st.write(product.get("description", ""))
        st.metric("Price", format_price(product.get("price")))
        stock = int(product.get("countInStock", 0))
        st.caption(f"In stock: {stock}")

        if get_session() is None:
            st.info("Sign in from the Account page to add items to your cart.")
        elif stock > 0:
            qty = st.number_input("Quantity", min_value=1, max_value=stock, value=1, step=1)
            if st.button("Add to cart"):
                cart = call_api(api.add_to_cart(product["_id"], int(qty)), "cart.add", monitoring)
                if cart is not None:
                    st.success(f"Added. Cart total: {format_price(cart.get('totalPrice'))}")
        else:
            st.warning("Out of stock")
