import streamlit as st

from frontend.gui.components.common import (
    call_api,
    cart_dataframe,
    format_price,
    get_api,
    get_session,
    init_monitoring,
)

st.set_page_config(page_title="Cart", layout="wide")
st.title("Cart")

if get_session() is None:
    st.info("Sign in from the Account page to see your cart.")
    st.stop()

api = get_api()
monitoring = init_monitoring()
cart = call_api(api.get_cart(), "cart.get", monitoring)
if cart is None:
    st.stop()
if not cart.get("items"):
    st.caption("Il carrello è vuoto.")
    st.stop()

st.dataframe(cart_dataframe(cart), use_container_width=True, hide_index=True)
m1, m2 = st.columns(2)
m1.metric("Items", cart.get("totalItems", 0))
m2.metric("Total", format_price(cart.get("totalPrice", 0)))

st.markdown("---")
st.subheader("Modifica")
for line in cart["items"]:
    product_id = line["productId"]
    name = (line.get("product") or {}).get("name", product_id)
    c1, c2, c3 = st.columns([3, 1, 1])
    with c1:
        st.write(name)
    with c2:
        qty = st.number_input(
            "Qty", min_value=0, value=int(line.get("quantity", 0)), step=1, key=f"qty_{product_id}"
        )
        if qty != line.get("quantity") and st.button("Update", key=f"upd_{product_id}"):
            if call_api(api.update_cart_item(product_id, int(qty)), "cart.update", monitoring) is not None:
                st.rerun()
    with c3:
        if st.button("Remove", key=f"rm_{product_id}"):
            if call_api(api.remove_from_cart(product_id), "cart.remove", monitoring) is not None:
                st.rerun()
