import streamlit as st

from frontend.gui.components.common import (
    call_api,
    clear_session,
    get_api,
    get_session,
    session_from_auth,
    set_session,
    init_monitoring,
)

st.set_page_config(page_title="Account", layout="centered")
st.title("Account")

api = get_api()
monitoring = init_monitoring()
session = get_session()

if session is None:
    tab_login, tab_register, tab_otp, tab_reset = st.tabs(["Sign in", "Sign up", "Email code", "Reset password"])

    with tab_login:
        with st.form("login"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in"):
                data = call_api(api.login(email, password), "users.login", monitoring)
                if data:
                    set_session(session_from_auth(data))
                    st.rerun()

    with tab_register:
        with st.form("register"):
            name = st.text_input("Name")
            email = st.text_input("Email ")
            phone = st.text_input("Phone number (optional)")
            password = st.text_input("Password ", type="password")
            if st.form_submit_button("Create account"):
                payload = {"name": name, "email": email or None, "password": password}
                if phone:
                    payload["phoneNumber"] = phone
                data = call_api(api.register(payload), "users.register", monitoring)
                if data:
                    set_session(session_from_auth(data))
                    st.rerun()

    with tab_otp:
        otp_email = st.text_input("Email", key="otp_email")
        if st.button("Send code"):
            data = call_api(api.request_otp(otp_email), "users.request_otp", monitoring)
            if data:
                st.success(data.get("message", "Code sent"))
        otp = st.text_input("Code", key="otp_code")
        if st.button("Verify"):
            data = call_api(api.verify_otp(otp_email, otp), "users.verify_otp", monitoring)
            if data:
                user = dict(data.get("user") or {})
                user["token"] = data.get("token")
                set_session(session_from_auth(user))
                st.rerun()

    with tab_reset:
        reset_email = st.text_input("Email", key="reset_email")
        if st.button("Send reset code"):
            data = call_api(api.forgot_password(reset_email), "users.forgot_password", monitoring)
            if data:
                st.info(data.get("message", ""))
        with st.form("reset"):
            code = st.text_input("Reset code")
            new_password = st.text_input("New password", type="password")
            if st.form_submit_button("Update password"):
                data = call_api(api.reset_password(reset_email, code, new_password), "users.reset_password", monitoring)
                if data:
                    st.success("Password aggiornata, ora puoi accedere.")
    st.stop()

# Utente autenticato
profile = call_api(api.get_profile(), "users.profile", monitoring)
if profile is None:
    if st.button("Sign out"):
        clear_session()
        st.rerun()
    st.stop()

st.write(f"**{profile.get('name') or profile.get('email')}** • role: {profile.get('role', 'user')}")
st.caption("Verified" if profile.get("isVerified") else "Not verified")

with st.form("profile"):
    name = st.text_input("Name", profile.get("name") or "")
    email = st.text_input("Email", profile.get("email") or "")
    phone = st.text_input("Phone number", profile.get("phoneNumber") or "")
    password = st.text_input("New password (leave empty to keep)", type="password")
    if st.form_submit_button("Save"):
        changes = {}
        for key, value in (("name", name), ("email", email), ("phoneNumber", phone)):
            if value and value != (profile.get(key) or ""):
                changes[key] = value
        if password:
            changes["password"] = password
        if not changes:
            st.info("Nessuna modifica.")
        elif call_api(api.update_profile(changes), "users.update_profile", monitoring) is not None:
            st.success("Profile updated")

if st.button("Sign out"):
    clear_session()
    st.rerun()
